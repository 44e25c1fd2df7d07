import pytest

from autofill.errors import InvalidTransitionError
from autofill.session import PHASE_ORDER, AutomationSession, Phase


def test_forward_transitions_in_order():
    session = AutomationSession()
    progress = []

    for phase in PHASE_ORDER[1:]:
        session.transition(phase)
        progress.append(session.progress)

    assert session.phase is Phase.COMPLETE
    assert progress == sorted(progress)
    assert session.progress == 1.0
    assert session.started_at is not None


def test_backward_transition_is_rejected():
    session = AutomationSession()
    session.transition(Phase.INITIALIZING)
    session.transition(Phase.FILLING)

    with pytest.raises(InvalidTransitionError):
        session.transition(Phase.MATCHING)
    with pytest.raises(InvalidTransitionError):
        session.transition(Phase.FILLING)


@pytest.mark.parametrize("phase", PHASE_ORDER[:-1])
def test_failed_reachable_from_every_non_terminal_phase(phase):
    session = AutomationSession(phase=phase)

    session.transition(Phase.FAILED, "boom")

    assert session.phase is Phase.FAILED
    assert session.failure_reason == "boom"


@pytest.mark.parametrize("terminal", [Phase.COMPLETE, Phase.FAILED])
def test_nothing_leaves_a_terminal_phase(terminal):
    session = AutomationSession(phase=terminal)

    for target in list(Phase):
        assert not session.can_transition(target)
    with pytest.raises(InvalidTransitionError):
        session.transition(Phase.FAILED)


def test_paced_progress_never_reaches_next_phase():
    session = AutomationSession()
    session.transition(Phase.INITIALIZING)
    session.transition(Phase.MATCHING)

    for _ in range(100):
        session.advance_progress(0.05)

    assert 0.15 < session.progress < 0.30


def test_idle_session_does_not_pace():
    session = AutomationSession()

    session.advance_progress(0.5)

    assert session.progress == 0.0
