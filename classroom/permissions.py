from rest_framework.permissions import BasePermission


class RolePermission(BasePermission):
    roles = ()
    message = 'You are not allowed to perform this action'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role in self.roles)


class IsStudent(RolePermission):
    roles = ('student',)
    message = 'Only students can access this'


class IsTeacher(RolePermission):
    roles = ('teacher',)
    message = 'Only teachers can access this'


class IsAdminRole(RolePermission):
    roles = ('admin', 'owner')
    message = 'Only admins can access this'


class IsTeacherOrAdmin(RolePermission):
    roles = ('teacher', 'admin', 'owner')
    message = 'Only teachers and admins can access this'


def is_admin(user):
    return user.role in ('admin', 'owner')


def owns_course(user, course):
    """Course owner or an admin."""
    return is_admin(user) or course.teacher_id == user.pk
