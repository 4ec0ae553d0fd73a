'''Admission of ballots into open elections.

:class:`BallotAdmission` checks a voter's choice against the election's
voting method, anonymizes the voter and stores the ballot, replacing the
voter's previous ballot in the same election if there is one.

Casting runs concurrently with finalization. :class:`ElectionGate` makes
sure that every cast either completes before the ballots are read for the
final tally, or is rejected as arriving too late.
'''

import logging
import threading
import contextlib
import weakref
from typing import Any, Hashable, Iterable, Callable, Optional
import datetime

import ballotbox.util
import ballotbox.vote
import ballotbox.system
from ballotbox.anonymize import Anonymizer
from ballotbox.election import Ballot, short_id
from ballotbox.errors import NotFoundError, AlreadyClosedError
from ballotbox.store import ElectionStore

logger = logging.getLogger(__name__)


class WeakRegistry:
    '''Objects created on demand per key and dropped once unused.

    An entry lives only as long as some caller holds a reference to its
    object, so callers must keep one for as long as they use it.

    :param factory: Creates the object for a new key.
    '''
    def __init__(self, factory: Callable[[], Any]):
        self.factory = factory
        self._items = weakref.WeakValueDictionary()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                item = self.factory()
                self._items[key] = item
            return item

    def __len__(self) -> int:
        return len(self._items)


class KeyLock:
    '''A lock that can be kept in a :class:`WeakRegistry`.'''
    __slots__ = ('lock', '__weakref__')

    def __init__(self):
        self.lock = threading.Lock()


class _Gate:
    def __init__(self):
        self.condition = threading.Condition()
        self.active = 0
        self.closing = False


class ElectionGate:
    '''Coordinate ballot casts with the finalization of an election.

    Casts enter the gate with :meth:`admit`; finalization enters it with
    :meth:`closing`, which shuts out new casts and waits for the ones in
    progress to finish. The gate of an election is forgotten when no cast
    or close is using it; by then a closed election rejects ballots in the
    store itself.
    '''
    def __init__(self):
        self._gates = WeakRegistry(_Gate)

    def __len__(self) -> int:
        return len(self._gates)

    @contextlib.contextmanager
    def admit(self, election_id: str):
        '''Hold the election open for the duration of a cast.

        :raises AlreadyClosedError: If the election is being finalized.
        '''
        gate = self._gates.get(election_id)
        with gate.condition:
            if gate.closing:
                raise AlreadyClosedError(election_id, 'accept ballots')
            gate.active += 1
        try:
            yield
        finally:
            with gate.condition:
                gate.active -= 1
                gate.condition.notify_all()

    @contextlib.contextmanager
    def closing(self, election_id: str):
        '''Shut out new casts and wait for the casts in progress.

        If the block raises, the gate opens again, since the election has
        not been closed.
        '''
        gate = self._gates.get(election_id)
        with gate.condition:
            gate.closing = True
            while gate.active:
                gate.condition.wait()
        try:
            yield
        except BaseException:
            with gate.condition:
                gate.closing = False
            raise


class BallotAdmission:
    '''Validate, anonymize and store ballots.

    :param store: The store holding elections and ballots.
    :param anonymizer: Computes voter fingerprints.
    :param gate: Coordination with finalization; a private one is created
        if not given.
    :param clock: A callable returning the current aware datetime.
    '''
    def __init__(self,
                 store: ElectionStore,
                 anonymizer: Anonymizer,
                 gate: Optional[ElectionGate] = None,
                 clock: Optional[Callable[[], datetime.datetime]] = None,
                 ):
        self.store = store
        self.anonymizer = anonymizer
        self.gate = gate if gate is not None else ElectionGate()
        self.clock = clock if clock is not None else ballotbox.util.utcnow
        self._voter_locks = WeakRegistry(KeyLock)

    def cast(self,
             election_id: str,
             voter_id: str,
             choice: Any,
             roles: Iterable[str] = (),
             ) -> Ballot:
        '''Cast or replace a voter's ballot.

        :param election_id: Id of the election to vote in.
        :param voter_id: Raw identity of the voter; it is only used to
            compute the fingerprint and is never stored.
        :param choice: The raw choice, see :mod:`ballotbox.vote` for the
            shapes accepted by each method.
        :param roles: Role ids the voter holds, used by weighted elections.
        :returns: The stored ballot.
        :raises NotFoundError: If the election is unknown.
        :raises AlreadyClosedError: If the election is closed or closing.
        :raises ValidationError: If the choice is invalid.
        '''
        election = self.store.get_election(election_id)
        if election is None:
            raise NotFoundError(election_id)
        if election.closed:
            raise AlreadyClosedError(election_id, 'accept ballots')
        system = ballotbox.system.get(election.method)
        vote = system.validator.validate(choice, election.options)
        if election.method == 'weighted':
            weight = ballotbox.vote.role_weight(election.role_weights, roles)
        else:
            weight = 1
        fingerprint = self.anonymizer.fingerprint(election_id, voter_id)
        voter_lock = self._voter_locks.get((election_id, fingerprint))
        with voter_lock.lock:
            with self.gate.admit(election_id):
                replaces = self.store.find_ballot(election_id, fingerprint)
                ballot = Ballot(
                    id=short_id(),
                    election_id=election_id,
                    fingerprint=fingerprint,
                    choice=vote,
                    weight=weight,
                    created_at=self.clock(),
                )
                self.store.save_ballot(ballot)
        logger.info(
            'ballot %s %s in %s by voter %s',
            ballot.id, 'replaced' if replaces else 'cast',
            election_id, fingerprint[:8]
        )
        return ballot
