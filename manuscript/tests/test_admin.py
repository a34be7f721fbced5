"""
Tests for the admin surfaces - the Wagtail project snippet and the Django
episode admin must not change ranks or remove episodes.
"""
from django.contrib import admin
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from django.urls import reverse

from wagtail.admin.panels import get_edit_handler
from wagtail.snippets.models import get_snippet_models

from manuscript.models import Episode, Pace, Project, ProjectStatus, Scene


class AdminTestMixin:

    @classmethod
    def setUpTestData(cls):
        cls.superuser = get_user_model().objects.create_superuser(
            username='editor', email='editor@example.com', password='pw-editor-123',
        )
        cls.project = Project.objects.create(
            title='Salt Road',
            genre='Historical',
            target_word_count=20000,
            pace=Pace.MEDIUM,
            number_of_episodes=2,
            words_written=6,
        )
        cls.episode1 = Episode.objects.create(
            project=cls.project, title='Caravan', sequence_number=1, current_word_count=6,
        )
        cls.episode2 = Episode.objects.create(
            project=cls.project, title='Oasis', sequence_number=2,
        )

    def episode_ranks(self):
        return list(
            Episode.objects.filter(project=self.project)
            .order_by('sequence_number')
            .values_list('title', 'sequence_number')
        )


# =============================================================================
# WAGTAIL SNIPPETS
# =============================================================================

class SnippetRegistrationTest(TestCase):

    def test_project_is_a_snippet(self):
        self.assertIn(Project, get_snippet_models())

    def test_children_are_not_snippets(self):
        snippets = get_snippet_models()
        self.assertNotIn(Episode, snippets)
        self.assertNotIn(Scene, snippets)


class ProjectEditFormTest(AdminTestMixin, TestCase):

    def get_form(self, **extra):
        form_class = get_edit_handler(Project).get_form_class()
        data = {
            'title': 'Salt Road',
            'genre': 'Historical',
            'target_word_count': '20000',
            'pace': Pace.MEDIUM,
            'status': ProjectStatus.IN_PROGRESS,
            'cover_color': '',
        }
        data.update(extra)
        return form_class(data, instance=self.project)

    def test_no_episode_formset(self):
        form_class = get_edit_handler(Project).get_form_class()
        self.assertNotIn('episodes', form_class.formsets)

    def test_cannot_delete_or_rerank_episodes(self):
        form = self.get_form(**{
            'episodes-TOTAL_FORMS': '2',
            'episodes-INITIAL_FORMS': '2',
            'episodes-MIN_NUM_FORMS': '0',
            'episodes-MAX_NUM_FORMS': '1000',
            'episodes-0-id': str(self.episode1.pk),
            'episodes-0-DELETE': 'on',
            'episodes-1-id': str(self.episode2.pk),
            'episodes-1-sequence_number': '7',
        })
        self.assertTrue(form.is_valid(), form.errors)
        form.save()

        self.assertEqual(self.episode_ranks(), [('Caravan', 1), ('Oasis', 2)])
        self.project.refresh_from_db()
        self.assertEqual(self.project.status, ProjectStatus.IN_PROGRESS)

    def test_cached_totals_are_read_only(self):
        form = self.get_form(words_written='999', number_of_episodes='9')
        self.assertTrue(form.is_valid(), form.errors)
        form.save()

        self.project.refresh_from_db()
        self.assertEqual(self.project.words_written, 6)
        self.assertEqual(self.project.number_of_episodes, 2)


# =============================================================================
# DJANGO ADMIN
# =============================================================================

class EpisodeAdminTest(AdminTestMixin, TestCase):

    def setUp(self):
        self.model_admin = admin.site._registry[Episode]
        self.request = RequestFactory().get('/')
        self.request.user = self.superuser

    def test_no_add_or_delete(self):
        self.assertFalse(self.model_admin.has_add_permission(self.request))
        self.assertFalse(self.model_admin.has_delete_permission(self.request, self.episode1))

    def test_delete_view_is_forbidden(self):
        self.client.force_login(self.superuser)
        response = self.client.post(
            reverse('admin:manuscript_episode_delete', args=[self.episode1.pk]),
            {'post': 'yes'},
        )
        self.assertEqual(response.status_code, 403)
        self.assertTrue(Episode.objects.filter(pk=self.episode1.pk).exists())

    def test_change_view_keeps_rank(self):
        self.client.force_login(self.superuser)
        response = self.client.post(
            reverse('admin:manuscript_episode_change', args=[self.episode1.pk]),
            {
                'title': 'Caravan at Dawn',
                'target_word_count': '10000',
                'status': 'in_progress',
                'sequence_number': '7',
                'current_word_count': '500',
            },
        )
        self.assertEqual(response.status_code, 302)
        self.episode1.refresh_from_db()
        self.assertEqual(self.episode1.title, 'Caravan at Dawn')
        self.assertEqual(self.episode1.sequence_number, 1)
        self.assertEqual(self.episode1.current_word_count, 6)
