"""
URL Configuration for surveys
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'surveys'

router = DefaultRouter()
router.register(r'survey-moments', views.SurveyMomentViewSet, basename='survey-moment')
router.register(r'forms', views.FormViewSet, basename='form')
router.register(r'questions', views.QuestionViewSet, basename='question')
router.register(r'respondents', views.RespondentViewSet, basename='respondent')
router.register(r'responses', views.ResponseViewSet, basename='response')

urlpatterns = [
    path('r/<str:token>/', views.PublicResponseView.as_view(), name='public-response'),
    path('dashboard/', views.DashboardView.as_view(), name='dashboard'),
    path('dashboard/text-feedback/', views.TextFeedbackView.as_view(), name='text-feedback'),
    path('', include(router.urls)),
]
