from .academics import (
    AssignTeacherView, GradeDetailView, GradeEnrollView, GradesByBoardView, GradeView, SubjectDetailView, SubjectView,
    remove_subject_teacher, subjects_by_grade, subjects_by_teacher,
)
from .admin_panel import (
    AdminUserListView, generate_report, review_course, send_announcement, update_user_role, update_user_status,
)
from .assignments import (
    AssignmentDetailView, AssignmentPublishView, CourseAssignmentsView, GradeSubmissionView, SubmissionListView,
    SubmitAssignmentView,
)
from .auth import (
    MeView, PasswordUpdateView, ProfileUpdateView, RegisterUserView, ResetPasswordView, UserProfileView,
    UserSearchView, forgot_password, login, logout,
)
from .courses import (
    CourseDetailView, CoursePublishView, CourseRatingView, CourseView, LessonView, ModuleDetailView, ModuleView,
    TeacherCoursesView,
)
from .dashboards import (
    admin_dashboard, class_progress, overall_progress, student_dashboard, teacher_class_overview, teacher_dashboard,
)
from .enrollments import (
    AttendanceView, CertificateView, CourseRosterView, DropEnrollmentView, EnrollmentDetailView,
    EnrollmentStatusView, EnrollmentView, LessonProgressView,
)
from .groups import GroupMembersView, StudentGroupDetailView, StudentGroupView, available_students
from .live_classes import (
    LiveClassDetailView, LiveClassEndView, LiveClassJoinView, LiveClassLeaveView, LiveClassStartView,
    LiveClassView, attendance_report, bulk_delete_live_classes,
)
from .materials import (
    CourseMaterialsView, MaterialDetailView, MaterialUploadView, TeacherMaterialsView, download_material,
    material_categories, material_stats,
)
from .notifications import NotificationDetailView, NotificationListView, read_all, unread_count
from .onboarding import (
    PendingUsersView, bulk_onboard, onboard_student, onboard_teacher, onboarding_stats, reject_onboarding,
)
from .payments import (
    AdminPaymentListView, PaymentDetailView, PaymentHistoryView, create_order, refund_payment, validate_coupon,
    verify_payment,
)
