from django.contrib import admin
from .models import (
    AuditEvent,
    Course,
    CourseModule,
    Enrolment,
    Group,
    Question,
    QuizAttempt,
    Quiz,
    QuizSlot,
    StudentProfile,
)


class QuizSlotInline(admin.TabularInline):
    model = QuizSlot
    extra = 0


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("shortname", "fullname")
    search_fields = ("shortname", "fullname")


@admin.register(CourseModule)
class CourseModuleAdmin(admin.ModelAdmin):
    list_display = ("id", "course", "group_mode")
    list_filter = ("group_mode",)


@admin.register(Quiz)
class QuizAdmin(admin.ModelAdmin):
    list_display = ("name", "course", "grade", "sumgrades", "grade_method")
    list_filter = ("grade_method", "course")
    search_fields = ("name",)
    inlines = [QuizSlotInline]


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ("name", "qtype")
    list_filter = ("qtype",)
    search_fields = ("name",)


@admin.register(QuizAttempt)
class QuizAttemptAdmin(admin.ModelAdmin):
    list_display = ("quiz", "user", "attempt", "state", "sumgrades", "preview")
    list_filter = ("state", "preview", "quiz")


@admin.register(Enrolment)
class EnrolmentAdmin(admin.ModelAdmin):
    list_display = ("user", "course", "created_at")
    list_filter = ("course",)


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ("name", "course")
    list_filter = ("course",)
    filter_horizontal = ("members",)


@admin.register(StudentProfile)
class StudentProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "idnumber", "institution", "department")
    search_fields = ("idnumber", "user__username")


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ("created_at", "action", "quiz", "actor_user", "target_type", "target_id")
    list_filter = ("action",)
    readonly_fields = [field.name for field in AuditEvent._meta.fields]
