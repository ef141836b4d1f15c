import uuid

import pytest

from vibecode.errors import AccessDenied
from vibecode.models.project import Project, Visibility
from vibecode.services.access_policy import Intent, can_access, check_access

OWNER = uuid.uuid4()
STRANGER = uuid.uuid4()


def _project(visibility: Visibility) -> Project:
    return Project(id=uuid.uuid4(), owner_id=OWNER, name="p", visibility=visibility.value)


@pytest.mark.parametrize(
    "identity, visibility, intent, allowed",
    [
        (OWNER, Visibility.PRIVATE, Intent.READ, True),
        (OWNER, Visibility.PRIVATE, Intent.WRITE, True),
        (OWNER, Visibility.PUBLIC, Intent.READ, True),
        (OWNER, Visibility.PUBLIC, Intent.WRITE, True),
        (STRANGER, Visibility.PRIVATE, Intent.READ, False),
        (STRANGER, Visibility.PRIVATE, Intent.WRITE, False),
        (STRANGER, Visibility.PUBLIC, Intent.READ, True),
        (STRANGER, Visibility.PUBLIC, Intent.WRITE, False),
    ],
)
def test_access_matrix(identity, visibility, intent, allowed):
    project = _project(visibility)
    assert can_access(project, identity, intent) is allowed

    if allowed:
        check_access(project, identity, intent)
    else:
        with pytest.raises(AccessDenied):
            check_access(project, identity, intent)


def test_access_is_stable_across_calls():
    project = _project(Visibility.PUBLIC)
    results = {can_access(project, STRANGER, Intent.READ) for _ in range(5)}
    assert results == {True}
