from django import forms
from django.contrib import admin
from django.core.exceptions import ValidationError

from .models import Student, BatchDefinition, TeacherBatchConfig
from .services.allocation import delete_batch_definition


class StudentForm(forms.ModelForm):
    class Meta:
        model = Student
        fields = '__all__'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance and self.instance.pk and 'prn' in self.fields:
            self.fields['prn'].disabled = True

    def clean_prn(self):
        val = self.cleaned_data.get('prn')
        if self.instance and self.instance.pk and val != self.instance.prn:
            raise ValidationError('Student PRN is immutable and cannot be changed.')
        return val


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    form = StudentForm
    list_display = ('prn', 'roll_no', 'full_name', 'branch', 'year_of_study', 'division', 'is_active')
    search_fields = ('prn', 'roll_no', 'full_name')
    list_filter = ('branch', 'year_of_study', 'division', 'is_active')
    actions = ('deactivate_students',)

    def deactivate_students(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f'{updated} student(s) deactivated.')
    deactivate_students.short_description = 'Deactivate selected students'


@admin.register(BatchDefinition)
class BatchDefinitionAdmin(admin.ModelAdmin):
    list_display = ('department', 'year', 'division', 'sub_batch', 'rbt_from', 'rbt_to', 'academic_year')
    search_fields = ('department', 'division', 'rbt_from', 'rbt_to')
    list_filter = ('department', 'year', 'academic_year')

    def delete_model(self, request, obj):
        delete_batch_definition(obj)

    def delete_queryset(self, request, queryset):
        for obj in queryset:
            delete_batch_definition(obj)


@admin.register(TeacherBatchConfig)
class TeacherBatchConfigAdmin(admin.ModelAdmin):
    list_display = ('teacher', 'batch_name', 'department', 'year', 'division', 'rbt_from', 'rbt_to', 'status', 'updated_at')
    search_fields = ('teacher__username', 'teacher__full_name', 'batch_name')
    list_filter = ('status', 'department', 'year')
    readonly_fields = ('created_at', 'updated_at')
    actions = ('approve', 'reject')

    def approve(self, request, queryset):
        queryset.update(status='Approved')
    approve.short_description = 'Approve selected allocations'

    def reject(self, request, queryset):
        queryset.update(status='Rejected')
    reject.short_description = 'Reject selected allocations'
