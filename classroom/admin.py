from django.contrib import admin

from .models import *


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ['email', 'name', 'role', 'onboarding_status', 'is_active', 'date_joined']
    list_filter = ['role', 'onboarding_status', 'is_active']
    search_fields = ['email', 'name']
    exclude = ['password']


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ['title', 'teacher', 'subject', 'standard', 'board', 'status', 'price']
    list_filter = ['status', 'board', 'category', 'level']
    search_fields = ['title', 'description']


admin.site.register(Grade)
admin.site.register(Subject)
admin.site.register(SubjectTeacher)
admin.site.register(Module)
admin.site.register(Lesson)
admin.site.register(CourseRating)
admin.site.register(Enrollment)
admin.site.register(LessonCompletion)
admin.site.register(AttendanceRecord)
admin.site.register(Assignment)
admin.site.register(Submission)
admin.site.register(AssignmentGrade)
admin.site.register(StudentGroup)
admin.site.register(LiveClass)
admin.site.register(LiveClassAttendee)
admin.site.register(StudyMaterial)
admin.site.register(MaterialView)
admin.site.register(MaterialDownload)
admin.site.register(Payment)
admin.site.register(Notification)
