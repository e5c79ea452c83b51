"""
Proximity-Based Edge-List Generation Module.

This module builds contact networks from relocation (telemetry) data. Rows are
partitioned into groups of temporally coincident fixes, the full pairwise
Euclidean distance matrix is computed within each group, and every ordered
pair of entities closer than a distance threshold becomes a directional edge.
Entities without any partner can be reinstated with a missing partner so that
every observed (group, entity) combination is represented in the output.

Notes
-----
The distance matrix is dense, so a group of ``n`` rows costs ``O(n^2)`` time
and memory. Groups are independent of each other and processed sequentially.
"""

# Future annotations for type hints
from __future__ import annotations

# Standard library imports
import logging
from typing import TYPE_CHECKING
from typing import cast

if TYPE_CHECKING:
    from collections.abc import Iterator
    from collections.abc import Sequence

    import networkx as nx

# Third-party imports
import numpy as np
import numpy.typing as npt
import pandas as pd
from scipy.spatial import distance as sdist

# Local imports
from .base import DISTANCE
from .base import ID1
from .base import ID2
from .base import EdgeDistParams
from .utils import UNSET
from .utils import edges_to_nx
from .utils import validate_relocations

# Module logger configuration
logger = logging.getLogger(__name__)

__all__ = ["edge_dist"]


def _euclidean_dm(coords: npt.NDArray[np.floating]) -> npt.NDArray[np.floating]:
    """
    Compute a dense pairwise Euclidean distance matrix.

    Rows containing non-finite coordinates yield ``NaN`` distances, which
    never satisfy a threshold comparison.

    Parameters
    ----------
    coords : numpy.typing.NDArray[np.floating]
        Array of point coordinates shaped as (n_samples, 2).

    Returns
    -------
    numpy.typing.NDArray[np.floating]
        Symmetric matrix of Euclidean distances.
    """
    return cast("npt.NDArray[np.floating]", sdist.squareform(sdist.pdist(coords)))


class EdgeListBuilder:
    """
    Helper that turns a validated relocation table into an edge list.

    The builder partitions rows by the grouping key, extracts the ordered
    index pairs below the threshold from each group's distance matrix, and
    assembles the final edge table, optionally reinstating isolated
    entities.

    Parameters
    ----------
    relocations : pandas.DataFrame
        Validated relocation table. It is never modified.
    params : EdgeDistParams
        Validated column bindings and options.
    """

    def __init__(self, relocations: pd.DataFrame, params: EdgeDistParams) -> None:
        self.relocations = relocations
        self.params = params
        self.key_columns = list(params.grouping.columns)
        self.n_groups = 0
        self.n_nonfinite = 0

    def iter_groups(self) -> Iterator[pd.DataFrame]:
        """
        Yield the row subsets that share a grouping key.

        Groups come in order of first appearance. Missing key values form
        their own group. The ungrouped key yields the whole table once.

        Yields
        ------
        pandas.DataFrame
            Rows of one group.
        """
        if self.params.grouping.is_ungrouped:
            yield self.relocations
            return

        grouped = self.relocations.groupby(
            self.key_columns, sort=False, dropna=False, observed=True
        )
        for _key, group in grouped:
            yield group

    def group_edges(self, group: pd.DataFrame) -> pd.DataFrame | None:
        """
        Extract the directional edges of a single group.

        The diagonal of the distance matrix is excluded and the whole matrix
        is scanned, so each qualifying unordered pair yields both ``(i, j)``
        and ``(j, i)``. Pairs exactly at the threshold are excluded.

        Parameters
        ----------
        group : pandas.DataFrame
            Rows of one group.

        Returns
        -------
        pandas.DataFrame or None
            Edges of the group in row-major matrix order, or None when the
            group has fewer than two rows or no qualifying pair.
        """
        if len(group) < 2:
            return None

        coords = group[list(self.params.coord_columns)].to_numpy(dtype=float, na_value=np.nan)
        self.n_nonfinite += int((~np.isfinite(coords)).any(axis=1).sum())

        dm = _euclidean_dm(coords)
        np.fill_diagonal(dm, np.nan)
        with np.errstate(invalid="ignore"):
            rows, cols = np.nonzero(dm < self.params.threshold)

        if rows.size == 0:
            return None
        return self._edge_frame(group, rows, cols, dm[rows, cols])

    def compute_edges(self) -> pd.DataFrame:
        """
        Compute the matched edges of every group.

        Returns
        -------
        pandas.DataFrame
            Concatenated edges with ``ID1``, ``ID2``, key columns and
            ``distance``.
        """
        frames: list[pd.DataFrame] = []
        for group in self.iter_groups():
            self.n_groups += 1
            edges = self.group_edges(group)
            if edges is not None:
                frames.append(edges)

        if self.n_nonfinite:
            logger.debug(
                "%d rows have non-finite coordinates and cannot match any partner",
                self.n_nonfinite,
            )

        if not frames:
            empty = np.array([], dtype=np.intp)
            return self._edge_frame(self.relocations, empty, empty, np.array([], dtype=float))
        return pd.concat(frames, ignore_index=True)

    def fill_isolated(self, edges: pd.DataFrame) -> pd.DataFrame:
        """
        Reinstate every (group, entity) combination with no edge.

        Each distinct (group, entity) combination of the input is joined to
        its edges on the key columns and ``ID1``. Since every edge originates
        from the input, this left join equals a full outer join. Unmatched
        combinations keep a single row with a missing partner.

        Parameters
        ----------
        edges : pandas.DataFrame
            Matched edges from :meth:`compute_edges`.

        Returns
        -------
        pandas.DataFrame
            Edges ordered by first appearance of each (group, entity).
        """
        id_col = self.params.id_column
        nodes = (
            self.relocations[[*self.key_columns, id_col]]
            .drop_duplicates()
            .rename(columns={id_col: ID1})
            .reset_index(drop=True)
        )
        return nodes.merge(edges, on=[*self.key_columns, ID1], how="left", sort=False)

    def to_output(self) -> pd.DataFrame:
        """
        Run the engine and assemble the final edge list.

        Returns
        -------
        pandas.DataFrame
            Edge list with columns ``ID1``, ``ID2``, the key columns and,
            when requested, ``distance``.
        """
        edges = self.compute_edges()
        n_matched = len(edges)

        if not self.params.return_distance:
            edges = edges.drop(columns=DISTANCE)

        if self.params.fill_missing:
            edges = self.fill_isolated(edges)

        logger.info(
            "Found %d edges across %d groups (%d isolated rows)",
            n_matched,
            self.n_groups,
            len(edges) - n_matched,
        )
        return edges[self.params.output_columns].reset_index(drop=True)

    def _edge_frame(
        self,
        rows_source: pd.DataFrame,
        rows: npt.NDArray[np.intp],
        cols: npt.NDArray[np.intp],
        distances: npt.NDArray[np.floating],
    ) -> pd.DataFrame:
        """
        Build an edge frame from positional index pairs.

        Identifier and key columns are taken by position from the source rows
        so that their dtypes are preserved.

        Parameters
        ----------
        rows_source : pandas.DataFrame
            Rows the positional indices refer to.
        rows, cols : numpy.typing.NDArray[np.intp]
            Positions of the first and second entity of each edge.
        distances : numpy.typing.NDArray[np.floating]
            Distance of each edge.

        Returns
        -------
        pandas.DataFrame
            Frame with ``ID1``, ``ID2``, key columns and ``distance``.
        """
        ids = rows_source[self.params.id_column]
        frame = rows_source.iloc[rows][self.key_columns].reset_index(drop=True)
        frame.insert(0, ID1, ids.iloc[rows].reset_index(drop=True))
        frame.insert(1, ID2, ids.iloc[cols].reset_index(drop=True))
        frame[DISTANCE] = distances
        return frame


# ============================================================================
# EDGE-LIST GENERATORS
# ============================================================================


def edge_dist(  # noqa: PLR0913 (public API requires many parameters)
    relocations: pd.DataFrame | None = None,
    threshold: float | None = None,
    id_column: str | None = None,
    coord_columns: Sequence[str] | None = None,
    timegroup_column: str | None = UNSET,
    split_by_columns: str | Sequence[str] | None = None,
    *,
    return_distance: bool = False,
    fill_missing: bool = True,
    as_nx: bool = False,
) -> pd.DataFrame | nx.MultiDiGraph | nx.MultiGraph:
    r"""
    Generate a distance-based edge list from relocation data.

    Rows are partitioned by the timegroup column and any split-by columns.
    Within each group, every ordered pair of entities whose Euclidean
    distance is strictly less than ``threshold`` becomes an edge. The matrix
    is symmetric and scanned in full, so a pair within the threshold appears
    twice, once in each direction.

    Parameters
    ----------
    relocations : pandas.DataFrame
        Relocation data with one row per entity fix. It is not modified.
    threshold : float
        Distance threshold in the units of the coordinates. Must be positive.
        Coordinates must be planar (e.g. UTM, where 50 means 50 m).
    id_column : str
        Column holding the entity identifiers.
    coord_columns : Sequence[str]
        Exactly two numeric columns holding the X and Y coordinates.
    timegroup_column : str or None
        Column of temporal group labels, typically assigned upstream from a
        datetime column and a time window. It must be passed explicitly. Pass
        None to skip temporal grouping.
    split_by_columns : str or Sequence[str], optional
        Additional grouping columns (e.g. populations or herds). Only rows
        sharing the same values are compared.
    return_distance : bool, default False
        If True, a ``distance`` column holds the distance between ``ID1`` and
        ``ID2``.
    fill_missing : bool, default True
        If True, entities that are not within the threshold of any other
        entity in their group appear once with a missing ``ID2``. If False,
        only matched edges are returned.
    as_nx : bool, default False
        If True, return the edge list as a NetworkX ``MultiDiGraph``.

    Returns
    -------
    pandas.DataFrame or networkx.MultiDiGraph
        Edge list with columns ``ID1``, ``ID2``, the timegroup column (if
        given), the split-by columns and, if requested, ``distance``. If
        ``as_nx`` is True, the equivalent directed multigraph.

    Raises
    ------
    MissingInputError
        If the table, threshold, id column or timegroup argument is missing.
    InvalidArgumentError
        If the threshold is not a positive number or ``coord_columns`` does
        not name exactly two columns.
    ColumnNotFoundError
        If a named column is absent from the table.
    TypeMismatchError
        If a coordinate column is not numeric.

    Warns
    -----
    SuspiciousTypeWarning
        If the timegroup column holds dates, times or text.
    DuplicateEntityWarning
        If an entity appears more than once within a group.

    See Also
    --------
    dyad_id : Label edges with an undirected dyad identifier.
    edges_to_nx : Convert an edge list into a NetworkX multigraph.
    edges_to_gdf : Attach LineString geometries to an edge list.

    Notes
    -----
    - Self pairs are never considered; the matrix diagonal is excluded.
    - A pair exactly at ``threshold`` is not an edge.
    - Rows with missing or non-finite coordinates produce undefined
      distances and silently never match; with ``fill_missing`` they still
      appear as isolated entities.
    - Groups with fewer than two rows yield no edges.

    Examples
    --------
    >>> import pandas as pd
    >>> df = pd.DataFrame({
    ...     "ID": ["A", "B", "C"],
    ...     "X": [0.0, 30.0, 500.0],
    ...     "Y": [0.0, 40.0, 500.0],
    ...     "timegroup": [1, 1, 1],
    ... })
    >>> edge_dist(df, threshold=100, id_column="ID", coord_columns=["X", "Y"],
    ...           timegroup_column="timegroup", return_distance=True)
      ID1  ID2  timegroup  distance
    0   A    B          1      50.0
    1   B    A          1      50.0
    2   C  NaN          1       NaN
    """
    grouping = validate_relocations(
        relocations,
        threshold,
        id_column,
        coord_columns,
        timegroup_column,
        split_by_columns,
    )
    assert relocations is not None
    assert threshold is not None
    assert id_column is not None
    assert coord_columns is not None

    x_col, y_col = coord_columns
    params = EdgeDistParams(
        threshold=float(threshold),
        id_column=id_column,
        coord_columns=(x_col, y_col),
        grouping=grouping,
        return_distance=return_distance,
        fill_missing=fill_missing,
    )
    edges = EdgeListBuilder(relocations, params).to_output()
    if as_nx:
        return edges_to_nx(edges)
    return edges
