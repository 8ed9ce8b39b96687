from decimal import Decimal

from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from .constants import FILE_TYPES, SUBJECT_CHOICES, file_type_for_mime
from .models import (
    AssignmentGrade, Assignment, AttendanceRecord, Course, CourseRating, Enrollment, Grade,
    Lesson, LessonCompletion, LiveClass, LiveClassAttendee, Module, Notification, Payment,
    StudentGroup, StudyMaterial, Subject, SubjectTeacher, Submission, User,
)
from .pagination import DynamicFieldsMixin

PROFILE_FIELDS = [
    'name', 'phone', 'avatar', 'bio', 'street', 'city', 'state', 'country', 'pincode',
    'qualification', 'experience',
    'board', 'standard', 'medium', 'school', 'parent_name', 'parent_phone', 'parent_email',
    'can_teach_boards', 'can_teach_standards', 'can_teach_subjects',
]


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'role']


class UserSerializer(DynamicFieldsMixin, serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'role', 'is_active', 'onboarding_status', 'onboarding_completed_at',
                  'approved_at', 'rejection_reason', 'last_login', 'date_joined'] + PROFILE_FIELDS
        read_only_fields = fields


class TeachableSubjectSerializer(serializers.Serializer):
    subject = serializers.ChoiceField(choices=SUBJECT_CHOICES)
    is_primary = serializers.BooleanField(default=False)
    specialization = serializers.CharField(max_length=100, allow_blank=True, default='')

    def to_internal_value(self, data):
        # a bare subject name is shorthand for a non-primary entry
        if isinstance(data, str):
            data = {'subject': data}
        return dict(super().to_internal_value(data))

    def to_representation(self, instance):
        if isinstance(instance, str):
            instance = {'subject': instance}
        return super().to_representation(instance)


class UserRegistrationSerializer(serializers.ModelSerializer):
    # write only so the hash never leaves the server
    password = serializers.CharField(write_only=True, min_length=6)
    role = serializers.ChoiceField(choices=[('student', 'Student'), ('teacher', 'Teacher')], default='student')
    can_teach_subjects = serializers.ListField(child=TeachableSubjectSerializer(), required=False)

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'password', 'role', 'phone',
                  'board', 'standard', 'medium', 'school', 'parent_name', 'parent_phone', 'parent_email',
                  'can_teach_boards', 'can_teach_standards', 'can_teach_subjects']
        extra_kwargs = {'email': {'validators': []}}

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError('User already exists with this email')
        return value

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, **validated_data)


class ProfileUpdateSerializer(serializers.ModelSerializer):
    can_teach_subjects = serializers.ListField(child=TeachableSubjectSerializer(), required=False)

    class Meta:
        model = User
        fields = PROFILE_FIELDS


class PasswordUpdateSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=6)

    def validate_current_password(self, value):
        if not self.context['request'].user.check_password(value):
            raise serializers.ValidationError('Password is incorrect')
        return value


class ResetPasswordSerializer(serializers.Serializer):
    uid = serializers.CharField()
    token = serializers.CharField()
    password = serializers.CharField(min_length=6, write_only=True)


class LessonSerializer(serializers.ModelSerializer):
    class Meta:
        model = Lesson
        fields = ['id', 'module', 'title', 'description', 'type', 'content_url', 'duration',
                  'file_size', 'order', 'is_preview']
        read_only_fields = ['module']


class ModuleSerializer(serializers.ModelSerializer):
    lessons = LessonSerializer(many=True, read_only=True)

    class Meta:
        model = Module
        fields = ['id', 'course', 'title', 'description', 'order', 'lessons']
        read_only_fields = ['course']


class CourseSerializer(DynamicFieldsMixin, serializers.ModelSerializer):
    teacher = UserSummarySerializer(read_only=True)
    enrolled_count = serializers.SerializerMethodField()
    effective_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = Course
        fields = ['id', 'title', 'description', 'thumbnail', 'teacher', 'board', 'standard', 'subject',
                  'batch', 'academic_year', 'medium', 'class_type', 'category', 'level', 'price',
                  'discount_price', 'effective_price', 'currency', 'duration', 'total_lectures',
                  'language', 'prerequisites', 'learning_objectives', 'syllabus_description', 'status',
                  'published_at', 'tags', 'certificate_available', 'max_students', 'enrollment_deadline',
                  'start_date', 'end_date', 'is_active', 'average_rating', 'total_reviews',
                  'enrolled_count', 'created_at', 'updated_at']
        read_only_fields = ['teacher', 'status', 'published_at', 'total_lectures', 'average_rating',
                            'total_reviews', 'created_at', 'updated_at']

    def get_enrolled_count(self, obj):
        return obj.enrolled_count()

    def validate(self, attrs):
        price = attrs.get('price', getattr(self.instance, 'price', None))
        discount = attrs.get('discount_price', getattr(self.instance, 'discount_price', None))
        if discount is not None and price is not None and discount > price:
            raise serializers.ValidationError({'discount_price': 'Discount price cannot exceed the price'})

        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date must be after the start date'})
        return attrs


class CourseDetailSerializer(CourseSerializer):
    modules = ModuleSerializer(many=True, read_only=True)
    enrollment = serializers.SerializerMethodField()

    class Meta(CourseSerializer.Meta):
        fields = CourseSerializer.Meta.fields + ['modules', 'enrollment']

    def get_enrollment(self, obj):
        request = self.context.get('request')
        if request is None or not request.user.is_authenticated:
            return None
        enrollment = obj.enrollments.filter(student=request.user).first()
        if enrollment is None:
            return None
        return {
            'id': enrollment.pk,
            'status': enrollment.status,
            'payment_status': enrollment.payment_status,
            'percentage_complete': enrollment.percentage_complete,
        }


class CourseSummarySerializer(serializers.ModelSerializer):
    teacher_name = serializers.SerializerMethodField()

    class Meta:
        model = Course
        fields = ['id', 'title', 'subject', 'standard', 'board', 'teacher_name']

    def get_teacher_name(self, obj):
        return obj.teacher.name


class CourseRatingSerializer(serializers.ModelSerializer):
    student = UserSummarySerializer(read_only=True)

    class Meta:
        model = CourseRating
        fields = ['id', 'course', 'student', 'rating', 'review', 'created_at']
        read_only_fields = ['course', 'created_at']


class LessonCompletionSerializer(serializers.ModelSerializer):
    class Meta:
        model = LessonCompletion
        fields = ['lesson', 'completed_at', 'time_spent']


class AttendanceRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = AttendanceRecord
        fields = ['id', 'date', 'status', 'session_type', 'duration', 'notes']


class AssignmentGradeSerializer(serializers.ModelSerializer):
    assignment_title = serializers.SerializerMethodField()

    class Meta:
        model = AssignmentGrade
        fields = ['assignment', 'assignment_title', 'score', 'max_score', 'graded_at', 'feedback']

    def get_assignment_title(self, obj):
        return obj.assignment.title


class EnrollmentSerializer(DynamicFieldsMixin, serializers.ModelSerializer):
    student = UserSummarySerializer(read_only=True)
    course = CourseSummarySerializer(read_only=True)
    completed_lessons = serializers.SerializerMethodField()

    class Meta:
        model = Enrollment
        fields = ['id', 'student', 'course', 'enrolled_at', 'status', 'payment_status', 'amount',
                  'paid_amount', 'payment_date', 'payment_method', 'transaction_id',
                  'percentage_complete', 'current_lesson', 'last_accessed_at', 'completed_lessons',
                  'final_grade', 'total_score', 'grade_percentage', 'certificate_issued',
                  'certificate_issued_at', 'certificate_id', 'certificate_url', 'completion_date']
        read_only_fields = fields

    def get_completed_lessons(self, obj):
        return obj.completed_lessons.count()


class EnrollmentDetailSerializer(EnrollmentSerializer):
    attendance = AttendanceRecordSerializer(many=True, read_only=True)
    assignment_grades = AssignmentGradeSerializer(many=True, read_only=True)
    attendance_percentage = serializers.SerializerMethodField()

    class Meta(EnrollmentSerializer.Meta):
        fields = EnrollmentSerializer.Meta.fields + ['attendance', 'assignment_grades', 'attendance_percentage']
        read_only_fields = fields

    def get_attendance_percentage(self, obj):
        return obj.attendance_percentage()


class AssignmentSerializer(DynamicFieldsMixin, serializers.ModelSerializer):
    created_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = Assignment
        fields = ['id', 'course', 'module', 'created_by', 'type', 'title', 'description', 'instructions',
                  'attachment', 'max_score', 'passing_score', 'due_date', 'available_from',
                  'allow_late_submission', 'late_penalty', 'max_attempts', 'is_published',
                  'total_submissions', 'average_score', 'highest_score', 'lowest_score',
                  'on_time_submissions', 'late_submissions', 'created_at', 'updated_at']
        read_only_fields = ['course', 'created_by', 'is_published', 'total_submissions', 'average_score',
                            'highest_score', 'lowest_score', 'on_time_submissions', 'late_submissions',
                            'created_at', 'updated_at']

    def validate(self, attrs):
        max_score = attrs.get('max_score', getattr(self.instance, 'max_score', 100))
        passing = attrs.get('passing_score', getattr(self.instance, 'passing_score', 40))
        if passing > max_score:
            raise serializers.ValidationError({'passing_score': 'Passing score cannot exceed the maximum score'})

        module = attrs.get('module')
        course = self.context.get('course') or getattr(self.instance, 'course', None)
        if module is not None and course is not None and module.course_id != course.pk:
            raise serializers.ValidationError({'module': 'Module does not belong to this class'})
        return attrs


class SubmissionSerializer(serializers.ModelSerializer):
    student = UserSummarySerializer(read_only=True)
    graded_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = Submission
        fields = ['id', 'assignment', 'student', 'attempt', 'content', 'file', 'status', 'is_late',
                  'submitted_at', 'score', 'feedback', 'graded_by', 'graded_at']
        read_only_fields = fields


class SubmitAssignmentSerializer(serializers.Serializer):
    content = serializers.CharField(required=False, allow_blank=True, default='')
    file = serializers.FileField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get('content') and not attrs.get('file'):
            raise serializers.ValidationError('Submission needs content or a file')
        return attrs


class GradeSubmissionSerializer(serializers.Serializer):
    student = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(role='student'))
    score = serializers.FloatField(min_value=0)
    feedback = serializers.CharField(required=False, allow_blank=True, default='')


class SubjectTeacherSerializer(serializers.ModelSerializer):
    teacher = UserSummarySerializer(read_only=True)

    class Meta:
        model = SubjectTeacher
        fields = ['teacher', 'is_primary', 'specialization', 'assigned_at']


class SubjectSerializer(serializers.ModelSerializer):
    teachers = SubjectTeacherSerializer(source='teacher_assignments', many=True, read_only=True)

    class Meta:
        model = Subject
        fields = ['id', 'name', 'code', 'description', 'grade', 'teachers', 'schedule', 'syllabus',
                  'total_classes', 'completed_classes', 'is_active', 'created_at']
        read_only_fields = ['created_at']

    def validate_code(self, value):
        value = value.upper()
        queryset = Subject.objects.filter(code=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('Subject code already exists')
        return value

    def validate(self, attrs):
        if self.instance is None and Subject.objects.filter(name=attrs['name'], grade=attrs['grade']).exists():
            raise serializers.ValidationError({'name': f"{attrs['name']} already exists in this grade"})
        return attrs


class GradeSerializer(DynamicFieldsMixin, serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)
    subjects = SubjectSerializer(many=True, read_only=True)
    enrolled_count = serializers.SerializerMethodField()

    class Meta:
        model = Grade
        fields = ['id', 'name', 'display_name', 'board', 'academic_year', 'medium', 'description',
                  'is_active', 'enrollment_price', 'discount_price', 'max_students', 'enrolled_count',
                  'subjects', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        # duplicates are reported by the view with a friendlier message
        validators = []

    def get_enrolled_count(self, obj):
        return obj.enrolled_students.count()


class StudentGroupSerializer(DynamicFieldsMixin, serializers.ModelSerializer):
    teacher = UserSummarySerializer(read_only=True)
    students = UserSummarySerializer(many=True, read_only=True)
    course_title = serializers.SerializerMethodField()

    class Meta:
        model = StudentGroup
        fields = ['id', 'name', 'description', 'course', 'course_title', 'teacher', 'students', 'type',
                  'color', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['teacher', 'created_at', 'updated_at']

    def get_course_title(self, obj):
        return obj.course.title

    def validate_color(self, value):
        if len(value) != 7 or not value.startswith('#'):
            raise serializers.ValidationError('Color must be a hex value like #3B82F6')
        return value


class LiveClassSerializer(DynamicFieldsMixin, serializers.ModelSerializer):
    teacher = UserSummarySerializer(read_only=True)
    course_title = serializers.SerializerMethodField()
    attendee_count = serializers.SerializerMethodField()
    ends_at = serializers.DateTimeField(read_only=True)

    class Meta:
        model = LiveClass
        fields = ['id', 'course', 'course_title', 'teacher', 'title', 'description', 'scheduled_at',
                  'ends_at', 'duration', 'meeting_url', 'meeting_id', 'password', 'status',
                  'max_attendees', 'is_recurring', 'recurring_pattern', 'recording_url',
                  'attendee_count', 'created_at', 'updated_at']
        read_only_fields = ['teacher', 'meeting_url', 'meeting_id', 'status', 'created_at', 'updated_at']
        extra_kwargs = {'password': {'write_only': True, 'required': False}}

    def get_course_title(self, obj):
        return obj.course.title

    def get_attendee_count(self, obj):
        return obj.attendees.filter(joined_at__isnull=False).count()

    def validate(self, attrs):
        if attrs.get('is_recurring') and not attrs.get('recurring_pattern'):
            raise serializers.ValidationError({'recurring_pattern': 'Recurring classes need a pattern'})
        return attrs


class LiveClassAttendeeSerializer(serializers.ModelSerializer):
    student = UserSummarySerializer(read_only=True)
    minutes_attended = serializers.IntegerField(read_only=True)

    class Meta:
        model = LiveClassAttendee
        fields = ['student', 'joined_at', 'left_at', 'attended', 'minutes_attended']


class StudyMaterialSerializer(DynamicFieldsMixin, serializers.ModelSerializer):
    uploaded_by = UserSummarySerializer(read_only=True)
    formatted_file_size = serializers.CharField(read_only=True)

    class Meta:
        model = StudyMaterial
        fields = ['id', 'title', 'description', 'type', 'file', 'file_url', 'file_name', 'file_size',
                  'formatted_file_size', 'mime_type', 'course', 'uploaded_by', 'module', 'category',
                  'tags', 'visibility', 'downloads', 'views', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['file_name', 'file_size', 'mime_type', 'uploaded_by', 'downloads', 'views',
                            'is_active', 'created_at', 'updated_at']

    def validate(self, attrs):
        material_type = attrs.get('type', getattr(self.instance, 'type', 'document'))
        upload = attrs.get('file')

        if material_type == 'link':
            if not attrs.get('file_url', getattr(self.instance, 'file_url', '')):
                raise serializers.ValidationError({'file_url': 'A URL is required for link materials'})
            return attrs

        if upload is None:
            if self.instance is None or not self.instance.file:
                raise serializers.ValidationError({'file': 'Please upload a file'})
            return attrs

        mime_type = getattr(upload, 'content_type', '') or ''
        detected = file_type_for_mime(mime_type)
        if detected is None:
            raise serializers.ValidationError({'file': f'File type {mime_type or "unknown"} is not allowed'})
        if detected != material_type:
            raise serializers.ValidationError({'file': f'Expected a {material_type} file but got {detected}'})
        max_size = FILE_TYPES[detected]['max_size']
        if upload.size > max_size:
            raise serializers.ValidationError(
                {'file': f'File too large. Maximum size for {detected} is {max_size // (1024 * 1024)}MB'}
            )

        attrs['file_name'] = upload.name
        attrs['file_size'] = upload.size
        attrs['mime_type'] = mime_type
        return attrs


class NotificationSerializer(serializers.ModelSerializer):
    sender = UserSummarySerializer(read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'sender', 'type', 'title', 'message', 'course', 'assignment', 'material',
                  'payment', 'link', 'is_read', 'priority', 'created_at']
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    student = UserSummarySerializer(read_only=True)
    course = CourseSummarySerializer(read_only=True)

    class Meta:
        model = Payment
        fields = ['id', 'order_id', 'payment_id', 'amount', 'currency', 'status', 'student', 'course',
                  'payment_method', 'coupon_code', 'discount_percent', 'paid_at', 'refund_id',
                  'refund_amount', 'refunded_at', 'refund_reason', 'created_at']
        read_only_fields = fields


class RefundSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'), required=False)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
