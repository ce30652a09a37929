from django.contrib import admin

from .models import AttendanceSession, AttendanceRecord, CommunicationLog, PreInformedAbsence


class AttendanceRecordInline(admin.TabularInline):
    model = AttendanceRecord
    extra = 0
    raw_id_fields = ('student',)
    readonly_fields = ('created_at',)


@admin.register(AttendanceSession)
class AttendanceSessionAdmin(admin.ModelAdmin):
    list_display = ('date', 'department', 'year_of_study', 'division', 'taken_by', 'locked')
    search_fields = ('department', 'division', 'taken_by__username')
    list_filter = ('locked', 'department', 'year_of_study', 'date')
    date_hierarchy = 'date'
    inlines = (AttendanceRecordInline,)
    actions = ('unlock_sessions',)

    def unlock_sessions(self, request, queryset):
        updated = queryset.update(locked=False)
        self.message_user(request, f'{updated} session(s) unlocked.')
    unlock_sessions.short_description = 'Unlock selected sessions for re-submission'


@admin.register(CommunicationLog)
class CommunicationLogAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'student', 'gfm', 'communication_type', 'call_target', 'reason')
    search_fields = ('student__prn', 'student__full_name', 'gfm__username', 'reason')
    list_filter = ('communication_type', 'call_target')
    readonly_fields = ('gfm', 'student', 'communication_type', 'call_target', 'phone_number', 'reason', 'custom_description', 'created_at')

    # the log is append-only
    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PreInformedAbsence)
class PreInformedAbsenceAdmin(admin.ModelAdmin):
    list_display = ('student', 'start_date', 'end_date', 'reason', 'gfm', 'informed_by', 'contact_method')
    search_fields = ('student__prn', 'student__full_name', 'reason')
    list_filter = ('informed_by', 'contact_method')
    raw_id_fields = ('student',)
