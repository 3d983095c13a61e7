from django.utils import timezone

from .exceptions import ConcurrentModification


def check_version(instance, expected):
    if expected is not None and expected != instance.version:
        raise ConcurrentModification(
            current_version=instance.version,
            expected_version=expected,
        )


def versioned_update(instance, **changes):
    """Apply changes with UPDATE ... WHERE id = pk AND version = read version.

    The caller must have read ``instance`` inside the current transaction.
    Raises ConcurrentModification when another writer got there first.
    """
    model = type(instance)
    read_version = instance.version
    changes['version'] = read_version + 1
    if any(field.name == 'updated_at' for field in model._meta.concrete_fields):
        changes['updated_at'] = timezone.now()

    rows = model.objects.filter(pk=instance.pk, version=read_version).update(**changes)
    if rows != 1:
        raise ConcurrentModification(current_version=None, expected_version=read_version)

    for field, value in changes.items():
        setattr(instance, field, value)
    return instance
