import pytest

from conftest import make_conversion
from supportdesk.conversions.state import ConversionStateMachine, current_request
from supportdesk.errors import InvalidStateError
from supportdesk.models import ApprovalSide, ApprovalStatus

APPROVED = ApprovalStatus.APPROVED
PENDING = ApprovalStatus.PENDING
REJECTED = ApprovalStatus.REJECTED


@pytest.mark.parametrize(
    ("internal", "client", "expected"),
    [
        (PENDING, PENDING, PENDING),
        (APPROVED, PENDING, PENDING),
        (PENDING, APPROVED, PENDING),
        (APPROVED, APPROVED, APPROVED),
        (REJECTED, PENDING, REJECTED),
        (APPROVED, REJECTED, REJECTED),
        (REJECTED, REJECTED, REJECTED),
    ],
)
def test_derived_state(internal, client, expected):
    request = make_conversion("c-1", "t-1", internal=internal, client=client)
    assert ConversionStateMachine.derived_state(request) is expected


def test_sides_only_leave_pending():
    assert ConversionStateMachine.can_transition(PENDING, APPROVED)
    assert ConversionStateMachine.can_transition(PENDING, REJECTED)
    assert not ConversionStateMachine.can_transition(APPROVED, REJECTED)
    assert not ConversionStateMachine.can_transition(REJECTED, APPROVED)
    assert not ConversionStateMachine.can_transition(APPROVED, PENDING)


def test_assert_vote_rejects_decided_side():
    request = make_conversion("c-1", "t-1", internal=APPROVED)
    ConversionStateMachine.assert_vote(request, ApprovalSide.CLIENT, APPROVED)
    with pytest.raises(InvalidStateError):
        ConversionStateMachine.assert_vote(request, ApprovalSide.INTERNAL, REJECTED)


def test_awaiting_vote_requires_one_pending_side():
    assert ConversionStateMachine.awaiting_vote(make_conversion("c-1", "t-1", internal=REJECTED))
    assert not ConversionStateMachine.awaiting_vote(
        make_conversion("c-2", "t-1", internal=REJECTED, client=APPROVED)
    )


def test_current_request_is_latest():
    older = make_conversion("c-old", "t-1", internal=REJECTED, minutes=0)
    newer = make_conversion("c-new", "t-1", minutes=30)
    assert current_request([newer, older]) is newer
    assert current_request([]) is None
