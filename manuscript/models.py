"""
Inkwell Manuscript - Models

This module defines the writing hierarchy: a Project is split into
Episodes, and each Episode into Scenes. The models are designed to:

1. Keep scene content as the single source of truth for word counts
2. Cache per-episode and per-project totals for cheap progress display
3. Rank siblings with dense, 1-based sequence numbers unique per parent

Architecture:
- Project is a Wagtail snippet (editable and searchable in admin)
- Episodes and scenes are plain children written only through the services
  layer, which keeps ranks dense and totals in step; the admin never edits
  or deletes them
- Cached totals are re-derived from children, never adjusted by deltas
"""

from django.conf import settings
from django.db import models

from wagtail.admin.panels import FieldPanel, MultiFieldPanel
from wagtail.snippets.models import register_snippet
from wagtail.search import index

from modelcluster.fields import ParentalKey
from modelcluster.models import ClusterableModel


# =============================================================================
# ENUMS / CHOICES
# =============================================================================

class Pace(models.TextChoices):
    """How quickly a project moves; sets the word budget per episode."""
    SLOW = 'Slow', 'Slow'
    MEDIUM = 'Medium', 'Medium'
    FAST = 'Fast', 'Fast'


class ProjectStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    IN_PROGRESS = 'in_progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    ARCHIVED = 'archived', 'Archived'


class EpisodeStatus(models.TextChoices):
    NOT_STARTED = 'not_started', 'Not Started'
    IN_PROGRESS = 'in_progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    REVISED = 'revised', 'Revised'


class SceneStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    IN_PROGRESS = 'in_progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    REVISED = 'revised', 'Revised'


# =============================================================================
# PROJECT
# =============================================================================

@register_snippet
class Project(index.Indexed, ClusterableModel):
    """
    A long-form writing project (a serial, a novel in parts, etc.).

    `words_written` is a cached total of the episodes' `current_word_count`.
    """
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='writing_projects'
    )
    title = models.CharField(max_length=255)
    genre = models.CharField(max_length=100)
    target_word_count = models.PositiveIntegerField(
        help_text="Goal for the whole project, rounded down to whole episodes"
    )
    words_written = models.PositiveIntegerField(
        default=0,
        help_text="Cached sum of episode word counts"
    )
    pace = models.CharField(
        max_length=20,
        choices=Pace.choices,
        default=Pace.MEDIUM
    )
    number_of_episodes = models.PositiveIntegerField(default=0)
    cover_color = models.CharField(max_length=32, blank=True)
    status = models.CharField(
        max_length=20,
        choices=ProjectStatus.choices,
        default=ProjectStatus.DRAFT
    )

    # Metadata
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    panels = [
        FieldPanel('title'),
        FieldPanel('genre'),
        MultiFieldPanel([
            FieldPanel('target_word_count'),
            FieldPanel('pace'),
            FieldPanel('words_written', read_only=True),
            FieldPanel('number_of_episodes', read_only=True),
        ], heading="Progress"),
        FieldPanel('status'),
        FieldPanel('cover_color'),
    ]

    search_fields = [
        index.SearchField('title', boost=10),
        index.SearchField('genre'),
    ]

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    @property
    def progress_percentage(self):
        if not self.target_word_count:
            return 0
        return round(self.words_written / self.target_word_count * 100)

    def get_episodes(self):
        """Episodes in rank order."""
        return self.episodes.order_by('sequence_number')

    def sum_episode_word_counts(self):
        """Re-derive `words_written` from the episodes' cached totals."""
        total = self.episodes.aggregate(total=models.Sum('current_word_count'))['total']
        return total or 0


# =============================================================================
# EPISODE
# =============================================================================

class Episode(models.Model):
    """
    An episode within a project.

    `current_word_count` is a cached total of the scenes' `word_count`.
    """
    project = ParentalKey(
        Project,
        on_delete=models.CASCADE,
        related_name='episodes'
    )
    title = models.CharField(max_length=255)
    sequence_number = models.PositiveIntegerField(
        help_text="1-based rank within the project"
    )
    target_word_count = models.PositiveIntegerField(default=0)
    current_word_count = models.PositiveIntegerField(
        default=0,
        help_text="Cached sum of scene word counts"
    )
    status = models.CharField(
        max_length=20,
        choices=EpisodeStatus.choices,
        default=EpisodeStatus.NOT_STARTED
    )

    # Metadata
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ['project', 'sequence_number']
        ordering = ['project', 'sequence_number']

    def __str__(self):
        return f"{self.sequence_number}. {self.title}"

    def get_scenes(self):
        """Scenes in rank order."""
        return self.scenes.order_by('sequence_number', 'pk')

    def sum_scene_word_counts(self):
        """Re-derive `current_word_count` from the scenes."""
        total = self.scenes.aggregate(total=models.Sum('word_count'))['total']
        return total or 0


# =============================================================================
# SCENE
# =============================================================================

class Scene(models.Model):
    """
    A scene within an episode. `content` is the leaf source of truth for
    every word count above it.

    Scenes are only written through `manuscript.services` so that content
    edits and rank changes keep the cached totals and ranks consistent.
    """
    episode = models.ForeignKey(
        Episode,
        on_delete=models.CASCADE,
        related_name='scenes'
    )
    title = models.CharField(max_length=255)
    content = models.TextField(blank=True, default='')
    word_count = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=SceneStatus.choices,
        default=SceneStatus.DRAFT
    )
    sequence_number = models.PositiveIntegerField(
        help_text="1-based rank within the episode"
    )
    notes = models.TextField(blank=True)

    # Metadata
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ['episode', 'sequence_number']
        ordering = ['episode', 'sequence_number']

    def __str__(self):
        return self.title
