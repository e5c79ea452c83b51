"""
Base Module for Edge-List Generation.

This module provides the foundational types shared by the contact2graph
modules: the exception and warning taxonomy raised during input validation,
the tagged grouping key that decides how relocations are partitioned, and the
parameter bundle passed explicitly from the validator to the distance engine.
"""

# Future annotations for type hints
from __future__ import annotations

# Standard library imports
from dataclasses import dataclass

__all__ = [
    "ColumnNotFoundError",
    "Contact2GraphError",
    "DuplicateEntityWarning",
    "EdgeDistParams",
    "GroupingKey",
    "InvalidArgumentError",
    "MissingInputError",
    "SuspiciousTypeWarning",
    "TypeMismatchError",
]

# Reserved output column names of an edge list
ID1 = "ID1"
ID2 = "ID2"
DISTANCE = "distance"
EDGE_COLUMNS = (ID1, ID2, DISTANCE)


# =============================================================================
# ERRORS AND WARNINGS
# =============================================================================


class Contact2GraphError(Exception):
    """Base class for all errors raised by contact2graph."""


class MissingInputError(Contact2GraphError, ValueError):
    """A required argument was not supplied."""


class InvalidArgumentError(Contact2GraphError, ValueError):
    """An argument was supplied but is semantically invalid."""


class ColumnNotFoundError(Contact2GraphError, KeyError):
    """
    One or more named columns are absent from the input table.

    ``KeyError`` quotes its message when converted to a string, so ``__str__``
    is overridden to keep the message readable.

    Parameters
    ----------
    message : str
        Human readable description of the missing columns.
    missing : list[str], optional
        Names of the columns that could not be found.
    """

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.missing = list(missing or [])

    def __str__(self) -> str:
        """Return the plain message without ``KeyError`` quoting."""
        return self.message


class TypeMismatchError(Contact2GraphError, TypeError):
    """A column or argument is present but holds the wrong type."""


class SuspiciousTypeWarning(UserWarning):
    """The timegroup column looks like raw dates, times or text."""


class DuplicateEntityWarning(UserWarning):
    """An entity appears more than once within a single group."""


# =============================================================================
# GROUPING AND PARAMETERS
# =============================================================================


@dataclass(frozen=True)
class GroupingKey:
    """
    Tagged grouping key used to partition relocations.

    A grouping key is either a concrete, ordered tuple of column names
    (timegroup first, then any split-by columns) or the explicit ungrouped
    sentinel, in which case the whole table forms a single implicit group.

    Parameters
    ----------
    columns : tuple[str, ...], default ()
        Ordered group key columns. An empty tuple denotes the ungrouped key.

    Examples
    --------
    >>> GroupingKey.from_columns("timegroup", ["herd"]).columns
    ('timegroup', 'herd')
    >>> GroupingKey.from_columns(None, []).is_ungrouped
    True
    """

    columns: tuple[str, ...] = ()

    @classmethod
    def ungrouped(cls) -> GroupingKey:
        """Return the sentinel key that treats the whole table as one group."""
        return cls(())

    @classmethod
    def from_columns(cls, timegroup: str | None, split_by: list[str]) -> GroupingKey:
        """
        Build a grouping key from a timegroup column and split-by columns.

        Parameters
        ----------
        timegroup : str or None
            Temporal group column, or None when no temporal grouping is wanted.
        split_by : list[str]
            Additional grouping columns.

        Returns
        -------
        GroupingKey
            Concrete key, or the ungrouped sentinel when no column is given.
        """
        cols = ([timegroup] if timegroup is not None else []) + list(split_by)
        # A column named twice is only grouped on once
        unique = tuple(dict.fromkeys(cols))
        return cls(unique) if unique else cls.ungrouped()

    @property
    def is_ungrouped(self) -> bool:
        """Whether this key is the single implicit group sentinel."""
        return not self.columns


@dataclass(frozen=True)
class EdgeDistParams:
    """
    Validated parameters for distance-based edge-list generation.

    Instances are created after validation and handed explicitly to the
    engine so that no call depends on ambient state.

    Parameters
    ----------
    threshold : float
        Exclusive upper bound on the distance between two entities.
    id_column : str
        Column holding the entity identifiers.
    coord_columns : tuple[str, str]
        X and Y coordinate columns, in planar units.
    grouping : GroupingKey
        How rows are partitioned before distances are computed.
    return_distance : bool, default False
        Whether the output keeps the ``distance`` column.
    fill_missing : bool, default True
        Whether entities without any edge are reinstated with a null partner.
    """

    threshold: float
    id_column: str
    coord_columns: tuple[str, str]
    grouping: GroupingKey
    return_distance: bool = False
    fill_missing: bool = True

    @property
    def output_columns(self) -> list[str]:
        """Ordered column names of the resulting edge list."""
        cols = [ID1, ID2, *self.grouping.columns]
        if self.return_distance:
            cols.append(DISTANCE)
        return cols
