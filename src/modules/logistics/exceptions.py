"""Logistics domain exceptions."""

from __future__ import annotations


class ColonyNotFound(Exception):
    """The requested colony does not exist."""


class ColonyAlreadyExists(Exception):
    """The colony name is already taken by another colony."""


class ReferenceDataMissing(Exception):
    """A colony, product or tariff needed to price an order could not be resolved.

    Never surfaced to clients: the order is created with zero fees and
    flagged for reconciliation.
    """
