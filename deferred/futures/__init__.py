from .future import Future, future
from .outcome import Outcome, OutcomeSlot, OutcomeState
from ..exceptions import Error, IllegalStateError
