from django.contrib import admin

from .models import SurveyMoment, Form, Question, Respondent, Response, Answer


@admin.register(SurveyMoment)
class SurveyMomentAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'order', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}


class QuestionInline(admin.TabularInline):
    model = Question
    extra = 0
    fields = ['order', 'type', 'text', 'required', 'options', 'conditional_logic']
    ordering = ['order']


@admin.register(Form)
class FormAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'status', 'moment', 'expires_at', 'max_responses', 'created_at']
    list_filter = ['status', 'type', 'moment']
    search_fields = ['title']
    inlines = [QuestionInline]


@admin.register(Respondent)
class RespondentAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'type', 'category', 'consent']
    list_filter = ['type', 'category', 'consent']
    search_fields = ['name', 'email']


class AnswerInline(admin.TabularInline):
    model = Answer
    extra = 0
    fields = ['question', 'numeric_value', 'text_value', 'selected_option']
    readonly_fields = fields


@admin.register(Response)
class ResponseAdmin(admin.ModelAdmin):
    list_display = ['id', 'form', 'respondent', 'status', 'progress', 'completed_at']
    list_filter = ['status', 'form']
    readonly_fields = ['token', 'started_at', 'completed_at']
    inlines = [AnswerInline]
