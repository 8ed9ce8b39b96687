"""
URL configuration for the lms project.

Every API route lives under ``api/``; the OpenAPI schema is served at
``api/schema/`` with Swagger UI at ``api/docs/``.
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from classroom.views import *

auth_patterns = [
    path('register/', RegisterUserView.as_view(), name='register'),
    path('login/', login, name='login'),
    path('logout/', logout, name='logout'),
    path('me/', MeView.as_view(), name='me'),
    path('profile/', ProfileUpdateView.as_view(), name='profile-update'),
    path('password/', PasswordUpdateView.as_view(), name='password-update'),
    path('forgot-password/', forgot_password, name='forgot-password'),
    path('reset-password/', ResetPasswordView.as_view(), name='reset-password'),
]

api_patterns = [
    path('auth/', include(auth_patterns)),
    path('users/', UserSearchView.as_view(), name='user-search'),
    path('users/<int:pk>/', UserProfileView.as_view(), name='user-profile'),

    path('courses/', CourseView.as_view(), name='course-list'),
    path('courses/mine/', TeacherCoursesView.as_view(), name='teacher-courses'),
    path('courses/<int:pk>/', CourseDetailView.as_view(), name='course-detail'),
    path('courses/<int:pk>/publish/', CoursePublishView.as_view(), name='course-publish'),
    path('courses/<int:pk>/modules/', ModuleView.as_view(), name='module-create'),
    path('courses/<int:pk>/modules/<int:module_pk>/', ModuleDetailView.as_view(), name='module-detail'),
    path('courses/<int:pk>/modules/<int:module_pk>/lessons/', LessonView.as_view(), name='lesson-create'),
    path('courses/<int:pk>/ratings/', CourseRatingView.as_view(), name='course-ratings'),
    path('courses/<int:pk>/students/', CourseRosterView.as_view(), name='course-roster'),
    path('courses/<int:pk>/assignments/', CourseAssignmentsView.as_view(), name='course-assignments'),
    path('courses/<int:pk>/materials/', CourseMaterialsView.as_view(), name='course-materials'),
    path('courses/<int:pk>/progress/', class_progress, name='class-progress'),
    path('courses/<int:pk>/overview/', teacher_class_overview, name='class-overview'),
    path('courses/<int:pk>/available-students/', available_students, name='class-available-students'),

    path('enrollments/', EnrollmentView.as_view(), name='enrollment-list'),
    path('enrollments/<int:pk>/', EnrollmentDetailView.as_view(), name='enrollment-detail'),
    path('enrollments/<int:pk>/progress/', LessonProgressView.as_view(), name='enrollment-progress'),
    path('enrollments/<int:pk>/attendance/', AttendanceView.as_view(), name='enrollment-attendance'),
    path('enrollments/<int:pk>/drop/', DropEnrollmentView.as_view(), name='enrollment-drop'),
    path('enrollments/<int:pk>/status/', EnrollmentStatusView.as_view(), name='enrollment-status'),
    path('enrollments/<int:pk>/certificate/', CertificateView.as_view(), name='enrollment-certificate'),
    path('progress/overall/', overall_progress, name='overall-progress'),

    path('assignments/<int:pk>/', AssignmentDetailView.as_view(), name='assignment-detail'),
    path('assignments/<int:pk>/publish/', AssignmentPublishView.as_view(), name='assignment-publish'),
    path('assignments/<int:pk>/submit/', SubmitAssignmentView.as_view(), name='assignment-submit'),
    path('assignments/<int:pk>/grade/', GradeSubmissionView.as_view(), name='assignment-grade'),
    path('assignments/<int:pk>/submissions/', SubmissionListView.as_view(), name='assignment-submissions'),

    path('grades/', GradeView.as_view(), name='grade-list'),
    path('grades/board/<str:board>/', GradesByBoardView.as_view(), name='grades-by-board'),
    path('grades/<int:pk>/', GradeDetailView.as_view(), name='grade-detail'),
    path('grades/<int:pk>/enroll/', GradeEnrollView.as_view(), name='grade-enroll'),
    path('grades/<int:pk>/subjects/', subjects_by_grade, name='subjects-by-grade'),
    path('subjects/', SubjectView.as_view(), name='subject-list'),
    path('subjects/teacher/', subjects_by_teacher, name='subjects-mine'),
    path('subjects/teacher/<int:teacher_pk>/', subjects_by_teacher, name='subjects-by-teacher'),
    path('subjects/<int:pk>/', SubjectDetailView.as_view(), name='subject-detail'),
    path('subjects/<int:pk>/teachers/', AssignTeacherView.as_view(), name='subject-assign-teacher'),
    path('subjects/<int:pk>/teachers/<int:teacher_pk>/', remove_subject_teacher, name='subject-remove-teacher'),

    path('groups/', StudentGroupView.as_view(), name='group-list'),
    path('groups/<int:pk>/', StudentGroupDetailView.as_view(), name='group-detail'),
    path('groups/<int:pk>/students/add/', GroupMembersView.as_view(), name='group-add-students'),
    path('groups/<int:pk>/students/remove/', GroupMembersView.as_view(membership='remove'), name='group-remove-students'),

    path('onboarding/pending/', PendingUsersView.as_view(), name='onboarding-pending'),
    path('onboarding/stats/', onboarding_stats, name='onboarding-stats'),
    path('onboarding/students/<int:pk>/', onboard_student, name='onboard-student'),
    path('onboarding/teachers/<int:pk>/', onboard_teacher, name='onboard-teacher'),
    path('onboarding/bulk/', bulk_onboard, name='onboarding-bulk'),
    path('onboarding/<int:pk>/reject/', reject_onboarding, name='onboarding-reject'),

    path('live-classes/', LiveClassView.as_view(), name='live-class-list'),
    path('live-classes/bulk-delete/', bulk_delete_live_classes, name='live-class-bulk-delete'),
    path('live-classes/<int:pk>/', LiveClassDetailView.as_view(), name='live-class-detail'),
    path('live-classes/<int:pk>/start/', LiveClassStartView.as_view(), name='live-class-start'),
    path('live-classes/<int:pk>/end/', LiveClassEndView.as_view(), name='live-class-end'),
    path('live-classes/<int:pk>/join/', LiveClassJoinView.as_view(), name='live-class-join'),
    path('live-classes/<int:pk>/leave/', LiveClassLeaveView.as_view(), name='live-class-leave'),
    path('live-classes/<int:pk>/attendance/', attendance_report, name='live-class-attendance'),

    path('materials/', MaterialUploadView.as_view(), name='material-upload'),
    path('materials/mine/', TeacherMaterialsView.as_view(), name='teacher-materials'),
    path('materials/stats/', material_stats, name='material-stats'),
    path('materials/categories/', material_categories, name='material-categories'),
    path('materials/<int:pk>/', MaterialDetailView.as_view(), name='material-detail'),
    path('materials/<int:pk>/download/', download_material, name='material-download'),

    path('notifications/', NotificationListView.as_view(), name='notification-list'),
    path('notifications/unread-count/', unread_count, name='notification-unread-count'),
    path('notifications/read-all/', read_all, name='notification-read-all'),
    path('notifications/<int:pk>/', NotificationDetailView.as_view(), name='notification-detail'),

    path('payments/coupon/', validate_coupon, name='payment-coupon'),
    path('payments/order/', create_order, name='payment-order'),
    path('payments/verify/', verify_payment, name='payment-verify'),
    path('payments/history/', PaymentHistoryView.as_view(), name='payment-history'),
    path('payments/all/', AdminPaymentListView.as_view(), name='payment-admin-list'),
    path('payments/<int:pk>/', PaymentDetailView.as_view(), name='payment-detail'),
    path('payments/<int:pk>/refund/', refund_payment, name='payment-refund'),

    path('dashboard/student/', student_dashboard, name='student-dashboard'),
    path('dashboard/teacher/', teacher_dashboard, name='teacher-dashboard'),
    path('dashboard/admin/', admin_dashboard, name='admin-dashboard'),

    path('admin/users/', AdminUserListView.as_view(), name='admin-users'),
    path('admin/users/<int:pk>/status/', update_user_status, name='admin-user-status'),
    path('admin/users/<int:pk>/role/', update_user_role, name='admin-user-role'),
    path('admin/courses/<int:pk>/review/', review_course, name='admin-course-review'),
    path('admin/reports/', generate_report, name='admin-reports'),
    path('admin/announcements/', send_announcement, name='admin-announcements'),
]

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include(api_patterns)),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
