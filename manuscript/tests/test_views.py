"""
Tests for the manuscript JSON API - projects, episodes and scenes.
"""
import json
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse

from manuscript.models import Episode, Pace, Project, Scene


class ApiTestMixin:
    """Mixin to create an owner, a stranger and a project tree."""

    @classmethod
    def setUpTestData(cls):
        User = get_user_model()
        cls.user = User.objects.create_user(username='writer', password='pw-writer-123')
        cls.stranger = User.objects.create_user(username='stranger', password='pw-stranger-123')

        cls.project = Project.objects.create(
            owner=cls.user,
            title='Night Ferry',
            genre='Thriller',
            target_word_count=20000,
            pace=Pace.MEDIUM,
            number_of_episodes=2,
            words_written=3,
        )
        cls.episode = Episode.objects.create(
            project=cls.project, title='Departure', sequence_number=1,
            target_word_count=10000, current_word_count=3,
        )
        cls.episode2 = Episode.objects.create(
            project=cls.project, title='Crossing', sequence_number=2,
            target_word_count=10000,
        )
        cls.scene_a = Scene.objects.create(
            episode=cls.episode, title='A', content='hello world', word_count=2, sequence_number=1,
        )
        cls.scene_b = Scene.objects.create(
            episode=cls.episode, title='B', content='one', word_count=1, sequence_number=2,
        )
        cls.scene_c = Scene.objects.create(
            episode=cls.episode, title='C', content='', word_count=0, sequence_number=3,
        )

    def setUp(self):
        self.client.force_login(self.user)

    def scenes_url(self, episode=None):
        return reverse('episode_scenes', kwargs={'episode_id': (episode or self.episode).pk})

    def patch_json(self, url, body):
        return self.client.patch(url, data=json.dumps(body), content_type='application/json')

    def post_json(self, url, body):
        return self.client.post(url, data=json.dumps(body), content_type='application/json')


# =============================================================================
# AUTHENTICATION & OWNERSHIP
# =============================================================================

class AccessTest(ApiTestMixin, TestCase):

    def test_anonymous_gets_401(self):
        self.client.logout()
        response = self.client.get(self.scenes_url())
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {'error': 'Unauthorized'})

    def test_anonymous_cannot_create_project(self):
        self.client.logout()
        response = self.post_json(reverse('project_collection'), {'title': 'X'})
        self.assertEqual(response.status_code, 401)

    def test_other_users_episode_is_not_found(self):
        self.client.force_login(self.stranger)
        response = self.client.get(self.scenes_url())
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'Episode not found')

    def test_other_users_project_is_not_found(self):
        self.client.force_login(self.stranger)
        response = self.client.get(reverse('project_detail', kwargs={'pk': self.project.pk}))
        self.assertEqual(response.status_code, 404)

    def test_health_check_is_public(self):
        self.client.logout()
        response = self.client.get(reverse('health_check'))
        self.assertEqual(response.json(), {'status': 'ok'})


# =============================================================================
# SCENES
# =============================================================================

class SceneListTest(ApiTestMixin, TestCase):

    def test_scenes_in_rank_order(self):
        Scene.objects.filter(pk=self.scene_a.pk).update(sequence_number=10)
        response = self.client.get(self.scenes_url())
        self.assertEqual(response.status_code, 200)
        scenes = response.json()['scenes']
        self.assertEqual([s['title'] for s in scenes], ['B', 'C', 'A'])
        self.assertEqual(
            set(scenes[0].keys()),
            {'id', 'title', 'content', 'word_count', 'status', 'sequence_number'},
        )

    def test_empty_episode(self):
        response = self.client.get(self.scenes_url(self.episode2))
        self.assertEqual(response.json(), {'scenes': []})


class SceneContentPatchTest(ApiTestMixin, TestCase):

    def test_content_update_returns_totals(self):
        response = self.patch_json(self.scenes_url(), {
            'sceneId': self.scene_b.pk,
            'content': 'one two three',
        })
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['scene']['id'], self.scene_b.pk)
        self.assertEqual(data['scene']['word_count'], 3)
        self.assertEqual(data['episodeWordCount'], 5)
        self.assertEqual(data['projectWordCount'], 5)

        self.project.refresh_from_db()
        self.assertEqual(self.project.words_written, 5)

    def test_scene_id_as_string(self):
        response = self.patch_json(self.scenes_url(), {
            'sceneId': str(self.scene_c.pk),
            'content': 'fresh start',
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['scene']['word_count'], 2)

    def test_scene_in_other_episode_is_not_found(self):
        response = self.patch_json(self.scenes_url(self.episode2), {
            'sceneId': self.scene_a.pk,
            'content': 'moved?',
        })
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'Scene not found')

    def test_content_wins_over_reorder_fields(self):
        response = self.patch_json(self.scenes_url(), {
            'sceneId': self.scene_a.pk,
            'content': 'just text',
            'newIndex': 2,
        })
        self.assertEqual(response.status_code, 200)
        self.assertIn('scene', response.json())
        self.scene_a.refresh_from_db()
        self.assertEqual(self.scene_a.sequence_number, 1)

    def test_store_failure_returns_500(self):
        with patch(
            'manuscript.services.refresh_episode_word_count',
            side_effect=DatabaseError('connection lost'),
        ):
            with self.assertLogs('manuscript.views', level='ERROR'):
                response = self.patch_json(self.scenes_url(), {
                    'sceneId': self.scene_b.pk,
                    'content': 'one two three',
                })
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['error'], 'connection lost')
        self.scene_b.refresh_from_db()
        self.assertEqual(self.scene_b.content, 'one')


class SceneReorderPatchTest(ApiTestMixin, TestCase):

    def test_move_last_to_first(self):
        response = self.patch_json(self.scenes_url(), {
            'sceneId': self.scene_c.pk,
            'newIndex': 0,
        })
        self.assertEqual(response.status_code, 200)
        scenes = response.json()['scenes']
        self.assertEqual([s['title'] for s in scenes], ['C', 'A', 'B'])
        self.assertEqual([s['sequence_number'] for s in scenes], [1, 2, 3])

    def test_negative_index_rejected(self):
        response = self.patch_json(self.scenes_url(), {
            'sceneId': self.scene_c.pk,
            'newIndex': -1,
        })
        self.assertEqual(response.status_code, 400)

    def test_index_past_end_moves_last(self):
        response = self.patch_json(self.scenes_url(), {
            'sceneId': self.scene_a.pk,
            'newIndex': 10,
        })
        self.assertEqual([s['title'] for s in response.json()['scenes']], ['B', 'C', 'A'])

    def test_unknown_scene_is_not_found(self):
        response = self.patch_json(self.scenes_url(), {
            'sceneId': 999999,
            'newIndex': 0,
        })
        self.assertEqual(response.status_code, 404)


class ScenePatchValidationTest(ApiTestMixin, TestCase):

    def test_neither_content_nor_index(self):
        response = self.patch_json(self.scenes_url(), {'sceneId': self.scene_a.pk})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Invalid request body')

    def test_index_without_scene(self):
        response = self.patch_json(self.scenes_url(), {'newIndex': 1})
        self.assertEqual(response.status_code, 400)

    def test_malformed_json(self):
        response = self.client.patch(
            self.scenes_url(), data='{not json', content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)

    def test_body_must_be_object(self):
        response = self.patch_json(self.scenes_url(), ['content'])
        self.assertEqual(response.status_code, 400)

    def test_bad_scene_id(self):
        response = self.patch_json(self.scenes_url(), {'sceneId': 'abc', 'content': 'x'})
        self.assertEqual(response.status_code, 400)


class SceneCreateTest(ApiTestMixin, TestCase):

    def test_appends_scene(self):
        response = self.post_json(self.scenes_url(), {'title': 'D'})
        self.assertEqual(response.status_code, 201)
        scene = response.json()['scene']
        self.assertEqual(scene['sequence_number'], 4)
        self.assertEqual(scene['word_count'], 0)
        self.assertEqual(scene['status'], 'draft')

    def test_first_scene_in_empty_episode(self):
        response = self.post_json(self.scenes_url(self.episode2), {'title': 'Opening'})
        self.assertEqual(response.json()['scene']['sequence_number'], 1)

    def test_title_required(self):
        response = self.post_json(self.scenes_url(), {})
        self.assertEqual(response.status_code, 400)

    def test_store_failure_returns_500(self):
        with patch(
            'manuscript.views.services.create_scene',
            side_effect=DatabaseError('disk full'),
        ):
            with self.assertLogs('manuscript.views', level='ERROR'):
                response = self.post_json(self.scenes_url(), {'title': 'D'})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'error': 'disk full'})


# =============================================================================
# PROJECTS
# =============================================================================

class ProjectApiTest(ApiTestMixin, TestCase):

    def test_list_only_own_projects(self):
        Project.objects.create(
            owner=self.stranger, title='Not Mine', genre='Drama',
            target_word_count=10000, pace=Pace.MEDIUM,
        )
        response = self.client.get(reverse('project_collection'))
        titles = [p['title'] for p in response.json()['projects']]
        self.assertEqual(titles, ['Night Ferry'])

    def test_create_project_with_episodes(self):
        response = self.post_json(reverse('project_collection'), {
            'title': 'Ash Season',
            'genre': 'Horror',
            'targetWordCount': 40000,
            'pace': 'Slow',
            'coverColor': '#aa2222',
        })
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['target_word_count'], 30000)
        self.assertEqual(data['number_of_episodes'], 2)
        self.assertEqual(data['cover_color'], '#aa2222')
        self.assertEqual([e['sequence_number'] for e in data['episodes']], [1, 2])

        project = Project.objects.get(pk=data['id'])
        self.assertEqual(project.owner, self.user)

    def test_create_project_invalid_pace(self):
        response = self.post_json(reverse('project_collection'), {
            'title': 'Ash Season', 'genre': 'Horror',
            'targetWordCount': 40000, 'pace': 'Sprint',
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Invalid pace')

    def test_create_project_missing_fields(self):
        response = self.post_json(reverse('project_collection'), {'title': 'Ash Season'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Missing required fields')

    def test_project_detail(self):
        response = self.client.get(reverse('project_detail', kwargs={'pk': self.project.pk}))
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['project']['words_written'], 3)
        self.assertEqual(data['project']['progress_percentage'], 0)
        self.assertEqual([e['title'] for e in data['episodes']], ['Departure', 'Crossing'])


# =============================================================================
# EPISODES
# =============================================================================

class EpisodeApiTest(ApiTestMixin, TestCase):

    def test_bulk_create_appends(self):
        response = self.post_json(reverse('episode_collection'), [
            {'projectId': self.project.pk, 'title': 'Arrival', 'targetWordCount': 10000},
            {'projectId': self.project.pk, 'title': 'Epilogue', 'targetWordCount': 2500},
        ])
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['message'], 'Episodes created successfully')
        self.assertEqual([e['sequence_number'] for e in data['data']], [3, 4])
        self.assertEqual([e['title'] for e in data['data']], ['Arrival', 'Epilogue'])

    def test_empty_list_rejected(self):
        response = self.post_json(reverse('episode_collection'), [])
        self.assertEqual(response.status_code, 400)

    def test_mixed_projects_rejected(self):
        other = Project.objects.create(
            owner=self.user, title='Other', genre='Drama',
            target_word_count=10000, pace=Pace.MEDIUM,
        )
        response = self.post_json(reverse('episode_collection'), [
            {'projectId': self.project.pk, 'title': 'One'},
            {'projectId': other.pk, 'title': 'Two'},
        ])
        self.assertEqual(response.status_code, 400)

    def test_other_users_project_is_not_found(self):
        self.client.force_login(self.stranger)
        response = self.post_json(reverse('episode_collection'), [
            {'projectId': self.project.pk, 'title': 'Intruder'},
        ])
        self.assertEqual(response.status_code, 404)
        self.assertEqual(Episode.objects.filter(project=self.project).count(), 2)
