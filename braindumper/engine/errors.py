"""Error taxonomy for the braindumper scheduling engine.

Parsing errors are raised immediately to the caller. Approval errors are
raised synchronously so the approval UI can surface them. "Nothing available"
is never an error: availability and suggestion computation return empty
results instead.
"""


class SchedulingError(Exception):
    """Base class for all scheduling engine errors."""


class InvalidTimeFormat(SchedulingError, ValueError):
    """A time-of-day string is not a valid "HH:mm" value."""

    def __init__(self, value: str):
        super().__init__(f"Invalid time format: {value!r} (expected HH:mm)")
        self.value = value


class DateMismatch(SchedulingError, ValueError):
    """Availability windows for different dates were combined."""


class ProposalError(SchedulingError):
    """Base class for proposal approval errors."""

    def __init__(self, message: str, *, proposal_id: str = ""):
        super().__init__(message)
        self.proposal_id = proposal_id


class ProposalAlreadyFinalized(ProposalError):
    """The proposal reached a terminal state and cannot change any more."""


class ProposalExpired(ProposalAlreadyFinalized):
    """The proposal passed its expiry time before being confirmed."""


class NothingApproved(ProposalError):
    """Confirm was requested without any approved task."""


class DisplacementsNotApproved(ProposalError):
    """The proposal displaces events but the displacements were not approved."""


class ConflictingSelections(ProposalError):
    """The selected slots of approved tasks would double-book the calendar."""


class CalendarWriteError(SchedulingError):
    """A calendar writer could not apply a commit instruction."""


class SlotAlreadyTaken(CalendarWriteError):
    """The target time was booked since the proposal was built."""