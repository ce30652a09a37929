from rest_framework import serializers

from academics.models import Student

from .models import AttendanceSession, AttendanceRecord, CommunicationLog, PreInformedAbsence
from .services.compliance import ALL, AuditFilters


class AttendanceSessionSerializer(serializers.ModelSerializer):
    taken_by_name = serializers.SerializerMethodField(read_only=True)
    record_count = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = AttendanceSession
        fields = ('id', 'date', 'department', 'year_of_study', 'division', 'taken_by', 'taken_by_name', 'locked', 'record_count', 'created_at')
        read_only_fields = fields

    def get_taken_by_name(self, obj):
        return obj.taken_by.display_name if obj.taken_by else None

    def get_record_count(self, obj):
        return obj.records.count()


class OpenSessionSerializer(serializers.Serializer):
    date = serializers.DateField()
    department = serializers.CharField()
    year_of_study = serializers.CharField()
    division = serializers.CharField(max_length=8)


class AttendanceEntrySerializer(serializers.Serializer):
    prn = serializers.CharField()
    status = serializers.ChoiceField(choices=AttendanceRecord.STATUS_CHOICES)
    remark = serializers.CharField(required=False, allow_blank=True, default='')


class SubmitAttendanceSerializer(serializers.Serializer):
    records = AttendanceEntrySerializer(many=True)
    mark_rest_present = serializers.BooleanField(required=False, default=False)


class AttendanceRecordSerializer(serializers.ModelSerializer):
    prn = serializers.CharField(source='student.prn', read_only=True)
    roll_no = serializers.CharField(source='student.roll_no', read_only=True)
    student_name = serializers.CharField(source='student.full_name', read_only=True)

    class Meta:
        model = AttendanceRecord
        fields = ('id', 'prn', 'roll_no', 'student_name', 'status', 'remark', 'created_at')


class CommunicationLogSerializer(serializers.ModelSerializer):
    student_prn = serializers.SlugRelatedField(slug_field='prn', queryset=Student.objects.all(), source='student')
    student_name = serializers.CharField(source='student.full_name', read_only=True)
    gfm_name = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = CommunicationLog
        fields = ('id', 'student_prn', 'student_name', 'gfm', 'gfm_name', 'communication_type', 'call_target', 'phone_number', 'reason', 'custom_description', 'created_at')
        read_only_fields = ('gfm', 'created_at')

    def get_gfm_name(self, obj):
        return obj.gfm.display_name if obj.gfm else None


class PreInformedAbsenceSerializer(serializers.ModelSerializer):
    student_prn = serializers.SlugRelatedField(slug_field='prn', queryset=Student.objects.all(), source='student')
    student_name = serializers.CharField(source='student.full_name', read_only=True)

    class Meta:
        model = PreInformedAbsence
        fields = ('id', 'student_prn', 'student_name', 'gfm', 'start_date', 'end_date', 'reason', 'proof_url', 'informed_by', 'contact_method', 'created_at')
        read_only_fields = ('gfm', 'created_at')

    def validate(self, attrs):
        if attrs['end_date'] < attrs['start_date']:
            raise serializers.ValidationError({'end_date': 'End date must not be before start date.'})
        return attrs


class AuditFiltersSerializer(serializers.Serializer):
    dept = serializers.CharField(required=False, default=ALL)
    year = serializers.CharField(required=False, default=ALL)
    div = serializers.CharField(required=False, default=ALL)
    date = serializers.DateField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    gfm_search = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        start = attrs.get('start_date') or attrs.get('date')
        end = attrs.get('end_date') or attrs.get('date')
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date must not be before start date.'})
        attrs['start_date'], attrs['end_date'] = start, end
        return attrs

    def to_filters(self) -> AuditFilters:
        data = self.validated_data
        return AuditFilters(
            dept=data['dept'],
            year=data['year'],
            div=data['div'],
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            gfm_search=data.get('gfm_search') or '',
        )


class DateRangeSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
