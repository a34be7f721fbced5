"""
URL Configuration for the Inkwell manuscript API

Add to your project's urls.py:
    path('api/', include('manuscript.urls')),
"""

from django.urls import path
from . import views


urlpatterns = [
    # Projects
    path('projects/',
         views.ProjectCollectionView.as_view(),
         name='project_collection'),
    path('projects/<int:pk>/',
         views.ProjectDetailView.as_view(),
         name='project_detail'),

    # Episodes
    path('episodes/',
         views.EpisodeCollectionView.as_view(),
         name='episode_collection'),

    # Scenes
    path('episodes/<int:episode_id>/scenes/',
         views.EpisodeScenesView.as_view(),
         name='episode_scenes'),
]
