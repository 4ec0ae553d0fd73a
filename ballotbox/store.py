'''Persistence of elections and ballots.

The core only talks to the abstract :class:`ElectionStore`; which engine
backs it is up to the deployment. Two reference implementations are given:
:class:`MemoryStore` for tests and short-lived processes, and
:class:`JsonFileStore` that keeps the same data in a JSON file so that open
elections survive a restart.

Stores hold serialized copies of the objects (see :mod:`ballotbox.persist`),
so callers never share mutable state with the store.
'''

import os
import abc
import json
import logging
import tempfile
import threading
from typing import Any, Dict, List, Optional

import ballotbox.persist
from ballotbox.election import Election, Ballot
from ballotbox.errors import NotFoundError, AlreadyClosedError

logger = logging.getLogger(__name__)


class ElectionStore(metaclass=abc.ABCMeta):
    '''Durable storage of elections and their ballots.

    Implementations must be safe to call from several threads. The store is
    the source of truth for whether an election is open.
    '''
    @abc.abstractmethod
    def save_election(self, election: Election) -> None:
        '''Persist a newly created election.'''
        raise NotImplementedError

    @abc.abstractmethod
    def get_election(self, election_id: str) -> Optional[Election]:
        '''Return the election with the given id, or None if unknown.'''
        raise NotImplementedError

    @abc.abstractmethod
    def list_open_elections(self) -> List[Election]:
        '''Return all elections that are not closed yet.'''
        raise NotImplementedError

    @abc.abstractmethod
    def mark_closed(self, election_id: str, result: Any) -> bool:
        '''Close the election and attach its result, if it is still open.

        This is a compare-and-set operation: of several concurrent calls for
        the same election, exactly one closes it and returns True.

        :returns: True if this call closed the election, False if it had
            already been closed.
        :raises NotFoundError: If the election is unknown.
        '''
        raise NotImplementedError

    @abc.abstractmethod
    def save_ballot(self, ballot: Ballot) -> None:
        '''Insert the ballot, replacing any ballot with the same key.

        :raises NotFoundError: If the ballot's election is unknown.
        :raises AlreadyClosedError: If the ballot's election is closed.
        '''
        raise NotImplementedError

    @abc.abstractmethod
    def list_ballots(self, election_id: str) -> List[Ballot]:
        '''Return all live ballots of the election.'''
        raise NotImplementedError

    @abc.abstractmethod
    def find_ballot(self,
                    election_id: str,
                    fingerprint: str,
                    ) -> Optional[Ballot]:
        '''Return the live ballot of a voter fingerprint, if any.'''
        raise NotImplementedError


class MemoryStore(ElectionStore):
    '''A thread-safe store keeping everything in memory.

    Every change builds the new contents aside and hands them to
    :meth:`_commit`; they replace the current contents only once it
    returns, so a failed commit leaves the store unchanged.
    '''
    def __init__(self):
        self._lock = threading.RLock()
        self._elections = {}
        self._ballots = {}

    def save_election(self, election: Election) -> None:
        with self._lock:
            elections = dict(self._elections)
            elections[election.id] = ballotbox.persist.to_dict(election)
            ballots = dict(self._ballots)
            ballots.setdefault(election.id, {})
            self._commit(elections, ballots)

    def get_election(self, election_id: str) -> Optional[Election]:
        with self._lock:
            data = self._elections.get(election_id)
            return None if data is None else ballotbox.persist.from_dict(data)

    def list_open_elections(self) -> List[Election]:
        with self._lock:
            return [
                ballotbox.persist.from_dict(data)
                for data in self._elections.values()
                if not data['closed']
            ]

    def mark_closed(self, election_id: str, result: Any) -> bool:
        with self._lock:
            data = self._elections.get(election_id)
            if data is None:
                raise NotFoundError(election_id)
            if data['closed']:
                return False
            closed = dict(data)
            closed['closed'] = True
            closed['result'] = ballotbox.persist.to_dict(result)
            elections = dict(self._elections)
            elections[election_id] = closed
            self._commit(elections, self._ballots)
            return True

    def save_ballot(self, ballot: Ballot) -> None:
        with self._lock:
            data = self._elections.get(ballot.election_id)
            if data is None:
                raise NotFoundError(ballot.election_id)
            if data['closed']:
                raise AlreadyClosedError(ballot.election_id, 'accept ballots')
            election_ballots = dict(self._ballots.get(ballot.election_id, {}))
            election_ballots[ballot.fingerprint] = (
                ballotbox.persist.to_dict(ballot)
            )
            ballots = dict(self._ballots)
            ballots[ballot.election_id] = election_ballots
            self._commit(self._elections, ballots)

    def list_ballots(self, election_id: str) -> List[Ballot]:
        with self._lock:
            return [
                ballotbox.persist.from_dict(data)
                for data in self._ballots.get(election_id, {}).values()
            ]

    def find_ballot(self,
                    election_id: str,
                    fingerprint: str,
                    ) -> Optional[Ballot]:
        with self._lock:
            data = self._ballots.get(election_id, {}).get(fingerprint)
            return None if data is None else ballotbox.persist.from_dict(data)

    def _commit(self,
                elections: Dict[str, Any],
                ballots: Dict[str, Dict[str, Any]],
                ) -> None:
        '''Replace the contents. Called under the lock.'''
        self._elections = elections
        self._ballots = ballots


class JsonFileStore(MemoryStore):
    '''A store flushing its whole contents to a JSON file on every change.

    The file is replaced atomically, so a crash leaves either the old or the
    new contents in place. Existing contents are loaded on construction.
    A change whose write fails raises and is not applied in memory either.

    :param path: Path to the JSON file; created on first write.
    '''
    def __init__(self, path: str):
        super().__init__()
        self.path = path
        self.load()

    def load(self) -> None:
        with self._lock:
            try:
                with open(self.path, 'r', encoding='utf8') as infile:
                    data = json.load(infile)
            except FileNotFoundError:
                data = {'elections': {}, 'ballots': {}}
            self._elections = data['elections']
            self._ballots = data['ballots']
            logger.info('loaded %d elections from %s',
                        len(self._elections), self.path)

    def _commit(self,
                elections: Dict[str, Any],
                ballots: Dict[str, Dict[str, Any]],
                ) -> None:
        self._write({'elections': elections, 'ballots': ballots})
        super()._commit(elections, ballots)

    def _write(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        handle, tmp_path = tempfile.mkstemp(
            dir=directory, prefix='.ballotbox-', suffix='.json'
        )
        try:
            with os.fdopen(handle, 'w', encoding='utf8') as outfile:
                json.dump(data, outfile, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            logger.error('writing %s failed', self.path)
            raise
