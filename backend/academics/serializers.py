from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Student, BatchDefinition, TeacherBatchConfig
from .services.batch_matching import is_valid_range
from .services.roll_keys import extract_sequence


class StudentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Student
        fields = ('id', 'prn', 'roll_no', 'full_name', 'branch', 'year_of_study', 'division', 'mobile_no', 'father_mobile', 'mother_mobile', 'is_active')
        read_only_fields = fields


class StudentRecordSerializer(serializers.Serializer):
    """Serialize a core StudentRecord (resolved rosters)."""
    prn = serializers.CharField()
    roll_no = serializers.CharField()
    full_name = serializers.CharField()
    branch = serializers.CharField()
    year_of_study = serializers.CharField()
    division = serializers.CharField()


class BatchDefinitionSerializer(serializers.ModelSerializer):
    batch_name = serializers.CharField(read_only=True)

    class Meta:
        model = BatchDefinition
        fields = ('id', 'department', 'year', 'division', 'sub_batch', 'batch_name', 'rbt_from', 'rbt_to', 'academic_year', 'created_at')
        read_only_fields = ('created_at',)

    def validate(self, attrs):
        rbt_from = attrs.get('rbt_from', getattr(self.instance, 'rbt_from', None))
        rbt_to = attrs.get('rbt_to', getattr(self.instance, 'rbt_to', None))
        errors = {}
        if extract_sequence(rbt_from) is None:
            errors['rbt_from'] = 'Range start must end in digits (e.g. CS2401).'
        if extract_sequence(rbt_to) is None:
            errors['rbt_to'] = 'Range end must end in digits (e.g. CS2420).'
        if not errors and not is_valid_range(rbt_from, rbt_to):
            errors['rbt_to'] = 'Range end must not be before range start.'
        if errors:
            raise serializers.ValidationError(errors)
        for key in ('department', 'year', 'division', 'sub_batch', 'rbt_from', 'rbt_to', 'academic_year'):
            if isinstance(attrs.get(key), str):
                attrs[key] = attrs[key].strip()
        for key in ('division', 'rbt_from', 'rbt_to'):
            if attrs.get(key):
                attrs[key] = attrs[key].upper()
        return attrs


class TeacherBatchConfigSerializer(serializers.ModelSerializer):
    teacher_username = serializers.CharField(source='teacher.username', read_only=True)
    teacher_name = serializers.CharField(source='teacher.display_name', read_only=True)

    class Meta:
        model = TeacherBatchConfig
        fields = ('id', 'teacher', 'teacher_username', 'teacher_name', 'batch_definition', 'batch_name', 'department', 'year', 'division', 'rbt_from', 'rbt_to', 'academic_year', 'status', 'created_at', 'updated_at')
        read_only_fields = fields


class AssignBatchSerializer(serializers.Serializer):
    teacher_id = serializers.PrimaryKeyRelatedField(queryset=get_user_model().objects.all(), source='teacher')
    batch_definition_id = serializers.PrimaryKeyRelatedField(queryset=BatchDefinition.objects.all(), source='batch_definition')

    def validate_teacher_id(self, value):
        if getattr(value, 'role', None) != 'GFM':
            raise serializers.ValidationError('Batches can only be assigned to GFM teachers.')
        return value


class AllocationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=TeacherBatchConfig.STATUS_CHOICES)


class SuggestRangeSerializer(serializers.Serializer):
    department = serializers.CharField()
    year = serializers.CharField()
    division = serializers.CharField()
    academic_year = serializers.CharField(required=False, allow_blank=True)
    size = serializers.IntegerField(required=False, min_value=1, max_value=999)

