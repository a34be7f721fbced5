"""
JSON API Views for Inkwell Manuscripts

These views expose the writing hierarchy to the editor UI:
- Projects (list, create with planned episodes, detail with episodes)
- Episodes (bulk create under a project)
- Scenes (list, content edit or reorder, create)

Every view answers JSON. Errors come back as {"error": "<message>"} with
the status code of the failure.
"""

import json
import logging

from django.db import DatabaseError
from django.http import JsonResponse
from django.views import View

from . import services
from .exceptions import ManuscriptError, NotFound, ValidationFailed
from .models import Episode, Project

logger = logging.getLogger(__name__)


# =============================================================================
# PAYLOADS
# =============================================================================

def scene_payload(scene):
    return {
        'id': scene.pk,
        'title': scene.title,
        'content': scene.content,
        'word_count': scene.word_count,
        'status': scene.status,
        'sequence_number': scene.sequence_number,
    }


def episode_payload(episode):
    return {
        'id': episode.pk,
        'project_id': episode.project_id,
        'title': episode.title,
        'sequence_number': episode.sequence_number,
        'current_word_count': episode.current_word_count,
        'target_word_count': episode.target_word_count,
        'status': episode.status,
    }


def project_payload(project):
    return {
        'id': project.pk,
        'title': project.title,
        'genre': project.genre,
        'target_word_count': project.target_word_count,
        'words_written': project.words_written,
        'pace': project.pace,
        'number_of_episodes': project.number_of_episodes,
        'cover_color': project.cover_color,
        'status': project.status,
        'progress_percentage': project.progress_percentage,
    }


# =============================================================================
# BASE VIEW
# =============================================================================

class JsonApiView(View):
    """
    Session-authenticated JSON endpoint.

    Translates manuscript errors and store failures into error payloads.
    Rows owned by other users are reported as not found.
    """

    def dispatch(self, request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({'error': 'Unauthorized'}, status=401)
        try:
            return super().dispatch(request, *args, **kwargs)
        except ManuscriptError as e:
            logger.info("%s %s rejected: %s", request.method, request.path, e)
            return JsonResponse({'error': e.message}, status=e.status_code)
        except DatabaseError as e:
            logger.exception("%s %s failed in the database", request.method, request.path)
            return JsonResponse({'error': str(e)}, status=500)

    def read_json(self):
        try:
            return json.loads(self.request.body or b'null')
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationFailed("Invalid request body")

    def read_object(self):
        body = self.read_json()
        if not isinstance(body, dict):
            raise ValidationFailed("Invalid request body")
        return body

    def owned_projects(self):
        return Project.objects.filter(owner=self.request.user)

    def get_project(self, project_id):
        project = self.owned_projects().filter(pk=project_id).first()
        if project is None:
            raise NotFound("Project not found")
        return project

    def get_episode(self, episode_id):
        episode = Episode.objects.filter(
            pk=episode_id, project__owner=self.request.user
        ).first()
        if episode is None:
            raise NotFound("Episode not found")
        return episode


def parse_id(value, field):
    """Row id from a JSON number or digit string."""
    if isinstance(value, bool):
        raise ValidationFailed(f"{field} must be an id")
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    if isinstance(value, int):
        return value
    raise ValidationFailed(f"{field} must be an id")


# =============================================================================
# PROJECTS
# =============================================================================

class ProjectCollectionView(JsonApiView):
    """List the caller's projects, or create one with its planned episodes."""

    def get(self, request):
        projects = [project_payload(p) for p in self.owned_projects()]
        return JsonResponse({'projects': projects})

    def post(self, request):
        body = self.read_object()
        project = services.create_project(
            owner=request.user,
            title=body.get('title'),
            genre=body.get('genre'),
            target_word_count=body.get('targetWordCount'),
            pace=body.get('pace'),
            cover_color=body.get('coverColor') or '',
        )
        data = project_payload(project)
        data['episodes'] = [episode_payload(e) for e in project.get_episodes()]
        return JsonResponse(data, status=201)


class ProjectDetailView(JsonApiView):
    """A project with its episodes in rank order."""

    def get(self, request, pk):
        project = self.get_project(pk)
        return JsonResponse({
            'project': project_payload(project),
            'episodes': [episode_payload(e) for e in project.get_episodes()],
        })


# =============================================================================
# EPISODES
# =============================================================================

class EpisodeCollectionView(JsonApiView):
    """
    Bulk-create episodes. The body is a list of
    {"projectId", "title", "targetWordCount"} items for one project.
    """

    def post(self, request):
        items = self.read_json()
        if not items or not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise ValidationFailed("Invalid episode data")

        project_ids = {parse_id(item.get('projectId'), 'projectId') for item in items}
        if len(project_ids) != 1:
            raise ValidationFailed("All episodes must belong to the same project")
        project = self.get_project(project_ids.pop())

        episodes = services.create_episodes(project.pk, [
            {'title': item.get('title'), 'target_word_count': item.get('targetWordCount', 0)}
            for item in items
        ])
        return JsonResponse({
            'message': 'Episodes created successfully',
            'data': [episode_payload(e) for e in episodes],
        }, status=201)


# =============================================================================
# SCENES
# =============================================================================

class EpisodeScenesView(JsonApiView):
    """
    Scenes of one episode.

    PATCH is one endpoint for two writes, picked by the body:
    - "content" present: store the content and roll up word counts
    - "sceneId" and "newIndex" present: move the scene and renumber
    """

    def get(self, request, episode_id):
        episode = self.get_episode(episode_id)
        return JsonResponse({'scenes': [scene_payload(s) for s in episode.get_scenes()]})

    def patch(self, request, episode_id):
        body = self.read_object()
        episode = self.get_episode(episode_id)

        if 'content' in body:
            scene_id = parse_id(body.get('sceneId'), 'sceneId')
            result = services.update_scene_content(episode.pk, scene_id, body['content'])
            return JsonResponse({
                'scene': scene_payload(result.scene),
                'episodeWordCount': result.episode_word_count,
                'projectWordCount': result.project_word_count,
            })

        if body.get('newIndex') is not None and body.get('sceneId') is not None:
            scene_id = parse_id(body['sceneId'], 'sceneId')
            scenes = services.reorder_scene(episode.pk, scene_id, body['newIndex'])
            return JsonResponse({'scenes': [scene_payload(s) for s in scenes]})

        raise ValidationFailed("Invalid request body")

    def post(self, request, episode_id):
        body = self.read_object()
        episode = self.get_episode(episode_id)
        scene = services.create_scene(episode.pk, body.get('title'))
        return JsonResponse({'scene': scene_payload(scene)}, status=201)
