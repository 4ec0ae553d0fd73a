"""Ballotbox - time-boxed group decisions with pluggable voting methods.

A ballotbox election is opened by a moderator with a chosen voting method and
a list of options, collects one replaceable ballot per participant, and is
finalized once - either when its deadline passes or when an administrator
closes it early.

The library is organized as follows:

-   The ``election`` module defines the data model (elections and ballots),
    and the ``vote`` module validates the choices carried by ballots for each
    voting method.
-   The ``evaluate`` subpackage holds the tally engine, one evaluator per
    voting method; the ``system`` module maps method keys to them.
-   The ``anonymize`` module turns voter identities into per-election
    fingerprints so that no raw identity is ever stored.
-   The ``admission`` and ``lifecycle`` modules accept ballots, schedule
    deadlines and guarantee that every election is finalized exactly once,
    even across process restarts.
-   The ``store`` and ``publish`` modules define the persistence and
    announcement contracts that the core depends on, together with simple
    reference implementations.
"""
