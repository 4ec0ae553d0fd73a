'''Election lifecycle: deadlines, finalization and restart recovery.

An election is open from its creation until it is finalized, either by its
deadline timer firing or by an administrator closing it early. The
:class:`ElectionManager` guarantees that finalization happens at most once
per election: the tally is computed once, the result is persisted once and
the result is published once, however the deadline timer, an early close
and a restart race against each other.

The store is the source of truth for which elections are open; the
:class:`Scheduler` only holds timers derived from it and is rebuilt from the
store by :meth:`ElectionManager.recover_on_startup`.
'''

import logging
import threading
import datetime
from typing import Any, List, Dict, Tuple, Iterable, Callable, Optional
from numbers import Number

import ballotbox.util
import ballotbox.system
import ballotbox.election
from ballotbox.admission import BallotAdmission, ElectionGate, KeyLock, \
    WeakRegistry
from ballotbox.anonymize import Anonymizer
from ballotbox.config import Settings
from ballotbox.election import Election, Ballot, DeadlineType
from ballotbox.errors import BallotboxError, NotFoundError, \
    AlreadyClosedError, ValidationError
from ballotbox.evaluate import TallyResult
from ballotbox.publish import Publisher, LoggingPublisher
from ballotbox.store import ElectionStore, MemoryStore, JsonFileStore

logger = logging.getLogger(__name__)


class Scheduler:
    '''Hold one cancellable deadline timer per election.

    Arming a timer for an election that already has one replaces it; the
    replaced timer is cancelled and its callback never runs, even if the
    timer was already due. Callbacks run in the timer's thread; exceptions
    they raise are logged there.

    :param timer_factory: A callable taking the delay in seconds and
        a function, returning a timer object with ``start()`` and
        ``cancel()`` methods. :class:`threading.Timer` by default.
    '''
    def __init__(self, timer_factory: Callable[..., Any] = threading.Timer):
        self.timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timers: Dict[str, Tuple[object, Any]] = {}

    def arm(self,
            election_id: str,
            delay: Number,
            callback: Callable[[str], Any],
            ) -> None:
        '''Call the callback with the election id after a delay in seconds.

        Negative delays are treated as zero.
        '''
        delay = min(max(0, delay), threading.TIMEOUT_MAX)
        token = object()

        def fire():
            with self._lock:
                current = self._timers.get(election_id)
                if current is None or current[0] is not token:
                    return
                del self._timers[election_id]
            try:
                callback(election_id)
            except Exception:
                logger.exception('deadline handling of %s failed',
                                 election_id)

        timer = self.timer_factory(delay, fire)
        timer.daemon = True
        with self._lock:
            previous = self._timers.get(election_id)
            self._timers[election_id] = (token, timer)
        if previous is not None:
            previous[1].cancel()
        timer.start()
        logger.debug('armed deadline of %s in %.1f s', election_id, delay)

    def cancel(self, election_id: str) -> bool:
        '''Cancel the election's timer.

        :returns: True if a pending timer was cancelled.
        '''
        with self._lock:
            entry = self._timers.pop(election_id, None)
        if entry is None:
            return False
        entry[1].cancel()
        return True

    def pending(self) -> List[str]:
        '''Return the ids of elections with a pending timer.'''
        with self._lock:
            return list(self._timers.keys())

    def shutdown(self) -> None:
        '''Cancel all pending timers.'''
        with self._lock:
            entries = list(self._timers.values())
            self._timers.clear()
        for token, timer in entries:
            timer.cancel()


class ElectionManager:
    '''Create, run and finalize elections.

    :param store: The store holding elections and ballots.
    :param anonymizer: Computes voter fingerprints for ballot admission.
    :param publisher: Announces the results of finalized elections.
    :param scheduler: Holds the deadline timers; a new one with real
        timers is created if not given.
    :param default_threshold: Threshold for elections created without one.
    :param default_duration: How long elections created without a deadline
        stay open.
    :param clock: A callable returning the current aware datetime.
    '''
    def __init__(self,
                 store: ElectionStore,
                 anonymizer: Anonymizer,
                 publisher: Publisher,
                 scheduler: Optional[Scheduler] = None,
                 default_threshold: Number = (
                     ballotbox.election.DEFAULT_THRESHOLD
                 ),
                 default_duration: datetime.timedelta = (
                     ballotbox.election.DEFAULT_DURATION
                 ),
                 clock: Optional[Callable[[], datetime.datetime]] = None,
                 ):
        self.store = store
        self.publisher = publisher
        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self.default_threshold = default_threshold
        self.default_duration = default_duration
        self.clock = clock if clock is not None else ballotbox.util.utcnow
        self.gate = ElectionGate()
        self.admission = BallotAdmission(
            store, anonymizer, gate=self.gate, clock=self.clock
        )
        self._locks = WeakRegistry(KeyLock)

    @classmethod
    def from_settings(cls,
                      settings: Settings,
                      publisher: Optional[Publisher] = None,
                      scheduler: Optional[Scheduler] = None,
                      ) -> 'ElectionManager':
        '''Assemble a manager from deployment settings.

        Uses a JSON file store if a store path is configured, an in-memory
        one otherwise, and a logging publisher unless another is given.
        '''
        if settings.store_path:
            store = JsonFileStore(settings.store_path)
        else:
            store = MemoryStore()
        return cls(
            store=store,
            anonymizer=Anonymizer(settings.secret),
            publisher=publisher if publisher is not None
            else LoggingPublisher(),
            scheduler=scheduler,
            default_threshold=settings.default_threshold,
            default_duration=settings.default_duration,
        )

    def create(self,
               kind: str,
               method: str,
               options: Optional[Iterable[str]] = None,
               deadline: DeadlineType = None,
               threshold: Optional[Number] = None,
               role_weights: Optional[Dict[str, Number]] = None,
               name: str = '',
               description: str = '',
               created_at: Optional[datetime.datetime] = None,
               election_id: Optional[str] = None,
               ) -> Election:
        '''Open a new election and arm its deadline.

        If the deadline has already passed (possible for an election created
        retroactively with an earlier ``created_at``), the election is
        finalized before this returns.

        :param kind: ``candidate`` or ``proposition``.
        :param method: Voting method key, see :mod:`ballotbox.system`.
        :param options: Options in declaration order. Propositions default
            to Yes, No and Abstain.
        :param deadline: When the election ends, see
            :func:`ballotbox.election.resolve_deadline`. Relative deadlines
            are counted from ``created_at``.
        :param threshold: Outright-win threshold, the configured default if
            not given.
        :param role_weights: Vote weights of roles for weighted elections.
        :param name: Title of the election.
        :param description: Free text describing the election.
        :param created_at: Creation instant; now by default.
        :param election_id: Id of the election; a new one by default.
        :raises ValidationError: If the definition is invalid.
        '''
        now = self.clock()
        if created_at is None:
            created_at = now
        else:
            created_at = ballotbox.election.as_aware(created_at)
        if options is None:
            if kind != 'proposition':
                raise ValidationError('candidate elections require options')
            options = ballotbox.election.PROPOSITION_OPTIONS
        ballotbox.system.get(method)
        election = Election(
            id=election_id if election_id else ballotbox.election.new_id(),
            kind=kind,
            method=method,
            options=options,
            created_at=created_at,
            ends_at=ballotbox.election.resolve_deadline(
                deadline, created_at, self.default_duration
            ),
            threshold=(
                self.default_threshold if threshold is None else threshold
            ),
            role_weights=role_weights,
            name=name,
            description=description,
        )
        election.validate()
        if self.store.get_election(election.id) is not None:
            raise ValidationError(f'election id already used: {election.id}')
        self.store.save_election(election)
        logger.info('created %s election %s (%s) ending %s',
                    election.method, election.id, election.kind,
                    election.ends_at.isoformat())
        if election.ends_at <= now:
            self._finalize(election.id)
            return self.store.get_election(election.id)
        self._arm(election)
        return election

    def get(self, election_id: str) -> Election:
        '''Return the election.

        :raises NotFoundError: If the election is unknown.
        '''
        election = self.store.get_election(election_id)
        if election is None:
            raise NotFoundError(election_id)
        return election

    def cast(self,
             election_id: str,
             voter_id: str,
             choice: Any,
             roles: Iterable[str] = (),
             ) -> Ballot:
        '''Cast or replace a ballot, see :meth:`BallotAdmission.cast`.'''
        return self.admission.cast(election_id, voter_id, choice, roles)

    def results(self, election_id: str) -> TallyResult:
        '''Return the current tally of the election without closing it.

        For a finalized election, this is its stored final result.

        :raises NotFoundError: If the election is unknown.
        '''
        election = self.get(election_id)
        if election.closed:
            return election.result
        return ballotbox.system.compute_tally(
            election, self.store.list_ballots(election_id)
        )

    def force_close(self, election_id: str) -> TallyResult:
        '''Finalize the election now, before its deadline.

        :raises NotFoundError: If the election is unknown.
        :raises AlreadyClosedError: If the election is already finalized,
            including when its deadline fired concurrently.
        '''
        election = self.get(election_id)
        if election.closed:
            raise AlreadyClosedError(election_id, 'close it again')
        result, closed_now = self._finalize(election_id)
        if not closed_now:
            raise AlreadyClosedError(election_id, 'close it again')
        logger.info('election %s closed early', election_id)
        return result

    def finalize(self, election_id: str) -> TallyResult:
        '''Finalize the election if it is still open.

        Finalizing an already finalized election is not an error; its
        stored result is returned and nothing is recomputed or published
        again.

        :raises NotFoundError: If the election is unknown.
        '''
        result, closed_now = self._finalize(election_id)
        return result

    def recover_on_startup(self) -> List[str]:
        '''Rebuild the deadline timers of all open elections in the store.

        Elections whose deadline passed while the process was down are
        finalized before this returns.

        :returns: Ids of the elections finalized during recovery.
        '''
        now = self.clock()
        finalized = []
        open_elections = self.store.list_open_elections()
        for election in open_elections:
            if election.ends_at > now:
                self._arm(election)
                continue
            try:
                result, closed_now = self._finalize(election.id)
            except BallotboxError:
                logger.exception('cannot finalize overdue election %s',
                                 election.id)
                continue
            if closed_now:
                finalized.append(election.id)
        logger.info('recovered %d open elections, finalized %d overdue',
                    len(open_elections), len(finalized))
        return finalized

    def shutdown(self) -> None:
        '''Cancel all pending deadline timers.'''
        self.scheduler.shutdown()

    def _arm(self, election: Election) -> None:
        delay = (election.ends_at - self.clock()).total_seconds()
        self.scheduler.arm(election.id, delay, self._on_deadline)

    def _on_deadline(self, election_id: str) -> None:
        logger.info('deadline of election %s reached', election_id)
        self.finalize(election_id)

    def _finalize(self, election_id: str) -> Tuple[TallyResult, bool]:
        '''Close the election unless closed, and publish its result.

        :returns: The final result and whether this call closed the
            election.
        '''
        election_lock = self._locks.get(election_id)
        with election_lock.lock:
            election = self.get(election_id)
            if election.closed:
                return election.result, False
            with self.gate.closing(election_id):
                ballots = self.store.list_ballots(election_id)
                result = ballotbox.system.compute_tally(election, ballots)
                if not self.store.mark_closed(election_id, result):
                    return self.get(election_id).result, False
        self.scheduler.cancel(election_id)
        logger.info('finalized election %s with %d ballots, winner: %s',
                    election_id, len(ballots), result.winner)
        election.closed = True
        election.result = result
        self._publish(election, result)
        return result, True

    def _publish(self, election: Election, result: TallyResult) -> bool:
        try:
            delivered = self.publisher.publish(election, result)
        except Exception:
            logger.exception('publishing the result of %s failed',
                             election.id)
            return False
        if not delivered:
            logger.error('publisher did not deliver the result of %s',
                         election.id)
        return bool(delivered)
