"""
Management command to re-derive cached word counts from scene content.

Episode totals are re-summed from their scenes, then project totals from
their episodes. Use it to repair totals left stale by a failed best-effort
edit or by rows changed outside the API.

Usage:
    python manage.py recompute_word_counts
    python manage.py recompute_word_counts --dry-run
    python manage.py recompute_word_counts --project 12 --verbose
"""

import logging

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from manuscript.models import Episode, Project
from manuscript.services import refresh_episode_word_count, refresh_project_word_count

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Recompute episode and project word counts from scene word counts'

    def add_arguments(self, parser):
        parser.add_argument(
            '--project',
            type=int,
            help='Only recompute this project',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report stale totals without saving',
        )
        parser.add_argument(
            '--verbose',
            action='store_true',
            help='Show every stale total',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        verbose = options['verbose']

        projects = Project.objects.order_by('pk')
        if options['project'] is not None:
            projects = projects.filter(pk=options['project'])
            if not projects.exists():
                raise CommandError(f"Project {options['project']} does not exist")

        total = projects.count()
        if total == 0:
            self.stdout.write(self.style.WARNING("No projects found."))
            return

        stats = {
            'episodes': 0,
            'stale_episodes': 0,
            'projects': 0,
            'stale_projects': 0,
        }

        for project in projects:
            with transaction.atomic():
                project_total = 0
                for episode in Episode.objects.filter(project=project).order_by('sequence_number'):
                    stats['episodes'] += 1
                    expected = episode.sum_scene_word_counts()
                    if expected != episode.current_word_count:
                        stats['stale_episodes'] += 1
                        logger.warning(
                            "Episode %s word count was %d, expected %d",
                            episode.pk, episode.current_word_count, expected
                        )
                        if verbose:
                            self.stdout.write(
                                f"  {project.title} / {episode}: "
                                f"{episode.current_word_count} -> {expected}"
                            )
                        if not dry_run:
                            refresh_episode_word_count(episode)
                    project_total += expected

                stats['projects'] += 1
                if project_total != project.words_written:
                    stats['stale_projects'] += 1
                    logger.warning(
                        "Project %s word count was %d, expected %d",
                        project.pk, project.words_written, project_total
                    )
                    if verbose:
                        self.stdout.write(
                            f"  {project.title}: {project.words_written} -> {project_total}"
                        )
                    if not dry_run:
                        refresh_project_word_count(project)

        if dry_run:
            self.stdout.write(self.style.WARNING("\nDry run - no changes saved."))
        else:
            self.stdout.write(self.style.SUCCESS(
                f"\nRecomputed {stats['episodes']} episodes across {stats['projects']} projects."
            ))

        self.stdout.write(self.style.NOTICE("\n=== Summary ==="))
        self.stdout.write(f"  Stale episodes: {stats['stale_episodes']}")
        self.stdout.write(f"  Stale projects: {stats['stale_projects']}")
