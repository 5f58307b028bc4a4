"""
Payment Status Watcher

The provider reports progress of a checkout asynchronously against a
provider-assigned reference. The watcher reduces those raw events into one
outcome:

    processing -> success | cancelled_by_user | pin_error | generic_failure

Terminal outcomes are sticky: once reached, later events for the same
reference are ignored. Subscriptions to the in-process event channel are
explicit disposable handles; ``with PaymentStatusWatcher(...)`` guarantees
release on every exit path.
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

RESULT_CODE_SUCCESS = '0'
RESULT_CODE_CANCELLED_BY_USER = '1032'
RESULT_CODE_PIN_ERROR = '2001'

SUCCESS_STATUSES = frozenset({'success', 'successful', 'completed', 'paid'})
FAILURE_STATUSES = frozenset({'failed', 'failure', 'cancelled', 'canceled', 'error', 'timeout', 'abandoned', 'reversed'})


class PaymentOutcome(str, Enum):
    PROCESSING = 'processing'
    SUCCESS = 'success'
    CANCELLED_BY_USER = 'cancelled_by_user'
    PIN_ERROR = 'pin_error'
    GENERIC_FAILURE = 'generic_failure'

    @property
    def is_terminal(self) -> bool:
        return self != PaymentOutcome.PROCESSING

    @property
    def is_failure(self) -> bool:
        return self.is_terminal and self != PaymentOutcome.SUCCESS

    @property
    def message(self) -> str:
        return OUTCOME_MESSAGES[self]


OUTCOME_MESSAGES = {
    PaymentOutcome.PROCESSING: 'Please wait while we confirm your payment...',
    PaymentOutcome.SUCCESS: 'Payment successful. Your booking has been confirmed.',
    PaymentOutcome.CANCELLED_BY_USER: 'You cancelled the payment request on your phone. You can try again.',
    PaymentOutcome.PIN_ERROR: 'The PIN you entered was incorrect. Please try again.',
    PaymentOutcome.GENERIC_FAILURE: 'The payment could not be completed. Please try again.',
}


@dataclass(frozen=True)
class ProviderEvent:
    reference: str
    status: str = ''
    result_code: Optional[str] = None
    description: str = ''
    payload: dict = field(default_factory=dict, compare=False, hash=False)


def normalize_result_code(result_code) -> Optional[str]:
    if result_code is None or result_code == '':
        return None
    text = str(result_code).strip()
    try:
        return str(int(text))
    except ValueError:
        return text


def reduce_event(status: str, result_code=None) -> PaymentOutcome:
    """Map one raw provider event to an outcome (PROCESSING when not final)"""
    code = normalize_result_code(result_code)
    if code == RESULT_CODE_CANCELLED_BY_USER:
        return PaymentOutcome.CANCELLED_BY_USER
    if code == RESULT_CODE_PIN_ERROR:
        return PaymentOutcome.PIN_ERROR

    status = (status or '').strip().lower()
    if status in SUCCESS_STATUSES:
        if code in (None, RESULT_CODE_SUCCESS):
            return PaymentOutcome.SUCCESS
        return PaymentOutcome.GENERIC_FAILURE
    if status in FAILURE_STATUSES:
        return PaymentOutcome.GENERIC_FAILURE
    if not status and code is not None:
        # Result-code-only callbacks (STK push style)
        return PaymentOutcome.SUCCESS if code == RESULT_CODE_SUCCESS else PaymentOutcome.GENERIC_FAILURE
    return PaymentOutcome.PROCESSING


class Subscription:
    """Disposable handle for one channel listener"""

    def __init__(self, channel: 'PaymentEventChannel', reference: str, callback: Callable[[ProviderEvent], None]):
        self.channel = channel
        self.reference = reference
        self.callback = callback
        self.active = True

    def close(self) -> None:
        if self.active:
            self.active = False
            self.channel._unsubscribe(self)

    def __enter__(self) -> 'Subscription':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class PaymentEventChannel:
    """In-process push channel keyed by checkout reference"""

    def __init__(self):
        self._subscribers: Dict[str, List[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, reference: str, callback: Callable[[ProviderEvent], None]) -> Subscription:
        subscription = Subscription(self, reference, callback)
        with self._lock:
            self._subscribers[reference].append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            listeners = self._subscribers.get(subscription.reference, [])
            if subscription in listeners:
                listeners.remove(subscription)
            if not listeners:
                self._subscribers.pop(subscription.reference, None)

    def subscriber_count(self, reference: str) -> int:
        with self._lock:
            return len(self._subscribers.get(reference, []))

    def publish(self, event: ProviderEvent) -> int:
        with self._lock:
            listeners = list(self._subscribers.get(event.reference, []))
        for subscription in listeners:
            if subscription.active:
                subscription.callback(event)
        return len(listeners)


payment_channel = PaymentEventChannel()


class PaymentStatusWatcher:
    """
    Reduces provider events for one checkout reference

    ``on_terminal`` is called exactly once, with the terminal outcome; on
    SUCCESS that is the caller's signal to settle the booking.
    """

    def __init__(
        self,
        reference: str,
        *,
        channel: Optional[PaymentEventChannel] = None,
        initial: PaymentOutcome = PaymentOutcome.PROCESSING,
        on_terminal: Optional[Callable[[PaymentOutcome], None]] = None,
    ):
        self.reference = reference
        self.channel = channel
        self._status = PaymentOutcome(initial)
        self._on_terminal = on_terminal
        self._subscription: Optional[Subscription] = None

    @property
    def status(self) -> PaymentOutcome:
        return self._status

    @property
    def is_terminal(self) -> bool:
        return self._status.is_terminal

    @property
    def message(self) -> str:
        return self._status.message

    @property
    def is_subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def handle(self, event: ProviderEvent) -> bool:
        """Apply one event; True when it moved the watcher to a terminal outcome"""
        if event.reference != self.reference:
            logger.debug(f"Ignoring event for {event.reference} on watcher {self.reference}")
            return False
        if self.is_terminal:
            logger.info(
                f"Ignoring {event.status or event.result_code} for {self.reference}: "
                f"already {self._status.value}"
            )
            return False

        outcome = reduce_event(event.status, event.result_code)
        if not outcome.is_terminal:
            return False

        self._status = outcome
        logger.info(f"Payment {self.reference} reached {outcome.value}")
        if self._on_terminal is not None:
            self._on_terminal(outcome)
        return True

    def start(self) -> 'PaymentStatusWatcher':
        if self.channel is None:
            raise RuntimeError("Watcher has no channel to subscribe to")
        if not self.is_subscribed:
            self._subscription = self.channel.subscribe(self.reference, self.handle)
        return self

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def __enter__(self) -> 'PaymentStatusWatcher':
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
