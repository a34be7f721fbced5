"""
Manuscript Services

Write paths for the project → episode → scene hierarchy:

- Scene content edits, with word-count roll-up to episode and project
- Scene reordering within an episode
- Appending scenes and episodes at the next free rank
- Project creation, including the episode plan derived from its pace

Cached totals (`Episode.current_word_count`, `Project.words_written`) are
always re-derived from children and written from here, never adjusted by
deltas. Every write locks the parent row it ranks or totals under, so
concurrent requests against the same parent serialize in the database.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import F, Max
from django.utils import timezone

from .exceptions import NotFound, ValidationFailed
from .models import Episode, Pace, Project, Scene

logger = logging.getLogger(__name__)

# The JavaScript \s class used by the editor. str.split() differs on
# \x1c-\x1f (splits) and \ufeff (does not).
WORD_SEPARATORS = re.compile(
    "[\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+"
)


# =============================================================================
# WORD COUNTS
# =============================================================================

def count_words(content: Optional[str]) -> int:
    """Number of whitespace-delimited tokens; blank content counts as 0."""
    if not content:
        return 0
    return len([word for word in WORD_SEPARATORS.split(content) if word])


def refresh_episode_word_count(episode: Episode) -> int:
    """Re-sum the episode's scenes and store the total on the episode."""
    total = episode.sum_scene_word_counts()
    Episode.objects.filter(pk=episode.pk).update(
        current_word_count=total, updated_at=timezone.now()
    )
    episode.current_word_count = total
    return total


def refresh_project_word_count(project: Project) -> int:
    """Re-sum the project's episode totals and store it on the project."""
    total = project.sum_episode_word_counts()
    Project.objects.filter(pk=project.pk).update(
        words_written=total, updated_at=timezone.now()
    )
    project.words_written = total
    return total


@dataclass
class ContentUpdate:
    """Result of a scene content edit."""
    scene: Scene
    episode_word_count: int
    project_word_count: int


def update_scene_content(episode_id, scene_id, content, strict=None) -> ContentUpdate:
    """
    Store new scene content and roll the word count up the hierarchy.

    In strict mode (the default, see MANUSCRIPT_STRICT_AGGREGATES) the scene
    write and both totals commit together or not at all. Otherwise the
    scene write commits on its own and a failed total is logged and
    reported as 0.
    """
    if not isinstance(content, str):
        raise ValidationFailed("content must be a string")
    if strict is None:
        strict = getattr(settings, 'MANUSCRIPT_STRICT_AGGREGATES', True)

    word_count = count_words(content)

    if strict:
        with transaction.atomic():
            episode, project = _lock_parent_chain(episode_id)
            _write_scene_content(episode.pk, scene_id, content, word_count)
            episode_total = refresh_episode_word_count(episode)
            project_total = refresh_project_word_count(project)
            scene = Scene.objects.get(pk=scene_id)
        return ContentUpdate(scene, episode_total, project_total)

    _write_scene_content(episode_id, scene_id, content, word_count)

    episode_total = 0
    try:
        with transaction.atomic():
            episode = Episode.objects.get(pk=episode_id)
            episode_total = refresh_episode_word_count(episode)
    except DatabaseError:
        logger.exception("Error updating word count for episode %s", episode_id)

    project_total = 0
    try:
        with transaction.atomic():
            project = Project.objects.get(episodes__pk=episode_id)
            project_total = refresh_project_word_count(project)
    except DatabaseError:
        logger.exception("Error updating word count for the project of episode %s", episode_id)

    scene = Scene.objects.get(pk=scene_id)
    return ContentUpdate(scene, episode_total, project_total)


def _lock_parent_chain(episode_id):
    # Project before episode: edits in sibling episodes take locks in the
    # same order.
    project_id = Episode.objects.filter(pk=episode_id).values_list(
        'project_id', flat=True
    ).first()
    if project_id is None:
        raise NotFound("Episode not found", {'episode_id': episode_id})
    project = Project.objects.select_for_update().get(pk=project_id)
    episode = Episode.objects.select_for_update().get(pk=episode_id)
    return episode, project


def _write_scene_content(episode_id, scene_id, content, word_count):
    updated = Scene.objects.filter(pk=scene_id, episode_id=episode_id).update(
        content=content,
        word_count=word_count,
        updated_at=timezone.now(),
    )
    if not updated:
        raise NotFound("Scene not found", {'scene_id': scene_id, 'episode_id': episode_id})
    logger.debug("Scene %s now has %d words", scene_id, word_count)


# =============================================================================
# RANKING
# =============================================================================

def next_sequence_number(siblings) -> int:
    """Rank after the highest existing one; gaps are not filled."""
    top = siblings.aggregate(top=Max('sequence_number'))['top']
    return (top or 0) + 1


def _apply_ranks(model, siblings, ordered_ids):
    """Write ranks 1..N for `ordered_ids` in a single transaction."""
    if not ordered_ids:
        return
    # Park every row above the current maximum first so neither statement
    # collides with the (parent, sequence_number) uniqueness constraint.
    offset = next_sequence_number(siblings)
    siblings.update(sequence_number=F('sequence_number') + offset)
    model.objects.bulk_update(
        [model(pk=pk, sequence_number=rank) for rank, pk in enumerate(ordered_ids, start=1)],
        ['sequence_number'],
    )


def reorder_scene(episode_id, scene_id, new_index) -> List[Scene]:
    """
    Move a scene to `new_index` (0-based) and renumber the episode densely.

    An index past the end moves the scene last. Negative indexes are
    rejected.
    """
    if isinstance(new_index, bool) or not isinstance(new_index, int):
        raise ValidationFailed("newIndex must be an integer")
    if new_index < 0:
        raise ValidationFailed("newIndex must not be negative", {'newIndex': new_index})

    with transaction.atomic():
        episode = _lock_episode(episode_id)
        siblings = Scene.objects.filter(episode=episode)
        scene_ids = list(
            siblings.order_by('sequence_number', 'pk').values_list('pk', flat=True)
        )
        try:
            position = scene_ids.index(scene_id)
        except ValueError:
            raise NotFound("Scene not found", {'scene_id': scene_id, 'episode_id': episode_id})

        scene_ids.insert(new_index, scene_ids.pop(position))
        _apply_ranks(Scene, siblings, scene_ids)

    logger.info("Moved scene %s to position %d in episode %s", scene_id, new_index, episode_id)
    return list(episode.get_scenes())


def _lock_episode(episode_id) -> Episode:
    episode = Episode.objects.select_for_update().filter(pk=episode_id).first()
    if episode is None:
        raise NotFound("Episode not found", {'episode_id': episode_id})
    return episode


# =============================================================================
# CREATION
# =============================================================================

def create_scene(episode_id, title) -> Scene:
    """Append a new draft scene after the episode's existing scenes."""
    title = _require_text(title, 'title')
    with transaction.atomic():
        episode = _lock_episode(episode_id)
        scene = Scene.objects.create(
            episode=episode,
            title=title,
            sequence_number=next_sequence_number(Scene.objects.filter(episode=episode)),
        )
    logger.info("Created scene %s at position %d in episode %s",
                scene.pk, scene.sequence_number, episode_id)
    return scene


def create_episodes(project_id, episodes) -> List[Episode]:
    """
    Append episodes to a project with contiguous ranks, in input order.

    Each item is a dict with `title` and an optional `target_word_count`.
    """
    if not episodes or not isinstance(episodes, list):
        raise ValidationFailed("Invalid episode data")
    specs = [
        (
            _require_text(item.get('title'), 'title'),
            _as_count(item.get('target_word_count', 0), 'target_word_count'),
        )
        for item in _require_dicts(episodes)
    ]

    with transaction.atomic():
        project = Project.objects.select_for_update().filter(pk=project_id).first()
        if project is None:
            raise NotFound("Project not found", {'project_id': project_id})
        start = next_sequence_number(Episode.objects.filter(project=project))
        created = [
            Episode.objects.create(
                project=project,
                title=title,
                target_word_count=target,
                sequence_number=start + offset,
            )
            for offset, (title, target) in enumerate(specs)
        ]

    logger.info("Created %d episodes for project %s", len(created), project_id)
    return created


@dataclass
class EpisodePlan:
    """How a project's target splits into episodes at its pace."""
    number_of_episodes: int
    words_per_episode: int
    adjusted_target: int


def words_per_episode(pace) -> int:
    budgets = {
        Pace.SLOW: getattr(settings, 'WORDS_PER_EPISODE_SLOW', 15000),
        Pace.MEDIUM: getattr(settings, 'WORDS_PER_EPISODE_MEDIUM', 10000),
        Pace.FAST: getattr(settings, 'WORDS_PER_EPISODE_FAST', 7500),
    }
    if pace not in Pace.values:
        raise ValidationFailed("Invalid pace", {'pace': pace})
    return budgets[Pace(pace)]


def plan_episodes(target_word_count, pace) -> EpisodePlan:
    budget = words_per_episode(pace)
    count = target_word_count // budget
    return EpisodePlan(
        number_of_episodes=count,
        words_per_episode=budget,
        adjusted_target=count * budget,
    )


def create_project(owner, title, genre, target_word_count, pace, cover_color='') -> Project:
    """
    Create a project and its planned episodes ("Episode 1".."Episode N").

    The stored target is rounded down to a whole number of episodes.
    """
    missing = [
        name for name, value in (
            ('title', title), ('genre', genre),
            ('targetWordCount', target_word_count), ('pace', pace),
        )
        if value is None or value == ''
    ]
    if missing:
        raise ValidationFailed("Missing required fields", {'fields': ', '.join(missing)})

    title = _require_text(title, 'title')
    genre = _require_text(genre, 'genre')
    target = _as_count(target_word_count, 'targetWordCount')
    if target <= 0:
        raise ValidationFailed("Target word count must be greater than zero")

    plan = plan_episodes(target, pace)
    if plan.number_of_episodes == 0:
        raise ValidationFailed(
            "Target word count must cover at least one episode",
            {'words_per_episode': plan.words_per_episode},
        )

    with transaction.atomic():
        project = Project.objects.create(
            owner=owner,
            title=title,
            genre=genre,
            target_word_count=plan.adjusted_target,
            pace=pace,
            cover_color=cover_color or '',
            number_of_episodes=plan.number_of_episodes,
        )
        create_episodes(project.pk, [
            {'title': f"Episode {number}", 'target_word_count': plan.words_per_episode}
            for number in range(1, plan.number_of_episodes + 1)
        ])

    logger.info("Created project %s with %d episodes", project.pk, plan.number_of_episodes)
    return project


# =============================================================================
# INPUT HELPERS
# =============================================================================

def _require_text(value, field):
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed(f"{field} is required")
    return value.strip()


def _as_count(value, field):
    """Non-negative integer from a JSON number or a digit string."""
    if isinstance(value, bool):
        raise ValidationFailed(f"{field} must be an integer")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if not isinstance(value, int):
        raise ValidationFailed(f"{field} must be an integer")
    if value < 0:
        raise ValidationFailed(f"{field} must not be negative")
    return value


def _require_dicts(items):
    for item in items:
        if not isinstance(item, dict):
            raise ValidationFailed("Invalid episode data")
        yield item
