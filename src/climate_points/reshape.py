"""Reshape wide per-layer extraction tables into tidy long format.

Each wide table holds the site metadata followed by one column per raster
layer. Layer names encode their time slice as
``<prefix>_<month>_<year>_<suffix>``; month and year are recovered from the
name and kept as text, while sorting compares them numerically.
"""

import re
from typing import Mapping, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict
from rich.console import Console

from climate_points.exceptions import LayerNameError
from climate_points.point_config import (
    DEFAULT_LAYER_NAME_PATTERN,
    GridConfig,
    ReshapeConfig,
    get_config,
)

console = Console()

LAYER_COLUMN = "layer"


class LayerName(BaseModel):
    """Structural fields of a layer name."""

    model_config = ConfigDict(frozen=True)

    prefix: str
    month: str
    year: str
    suffix: str


def parse_layer_name(name: str, pattern: str = DEFAULT_LAYER_NAME_PATTERN) -> LayerName:
    """Split a layer name into prefix, month, year and suffix.

    >>> parse_layer_name("RSMS_09_1881_01").month
    '09'

    Raises:
        LayerNameError: If the name does not have exactly four underscore
            separated fields, or month/year are not valid numbers
    """
    name = str(name)
    fields = name.split("_")
    if len(fields) != 4:
        raise LayerNameError(name, f"expected 4 '_'-separated fields, found {len(fields)}")

    match = re.match(pattern, name)
    if match is None:
        raise LayerNameError(name, f"does not match pattern {pattern}")

    groups = match.groupdict()
    month = groups["month"]
    if not month.isdigit() or not groups["year"].isdigit():
        raise LayerNameError(name, "month and year must be numeric")
    if not 1 <= int(month) <= 12:
        raise LayerNameError(name, f"month {month} outside 1-12")

    return LayerName(
        prefix=groups.get("prefix") or fields[0],
        month=month,
        year=groups["year"],
        suffix=groups.get("suffix") or fields[3],
    )


def check_layer_names(names, grid_config: Optional[GridConfig] = None) -> list[LayerName]:
    """Check that every layer name is picked up by the filter and parses.

    A layer the filter misses would be melted as site metadata, so it is
    rejected here along with names that break the naming convention.

    Raises:
        LayerNameError: For the first offending name
    """
    grid_config = grid_config or get_config().grid
    regex = re.compile(grid_config.layer_filter)
    parsed = []
    for name in names:
        if not regex.search(str(name)):
            raise LayerNameError(name, f"does not match layer filter {grid_config.layer_filter!r}")
        parsed.append(parse_layer_name(name, grid_config.layer_name_pattern))
    return parsed


def layer_columns(wide: pd.DataFrame, layer_filter: str) -> list[str]:
    """Columns of a wide table whose names match the layer filter."""
    regex = re.compile(layer_filter)
    return [c for c in wide.columns if regex.search(str(c))]


def melt_extraction(
    wide: pd.DataFrame,
    period: str,
    layer_filter: Optional[str] = None,
    period_column: Optional[str] = None,
    value_column: Optional[str] = None,
) -> pd.DataFrame:
    """Melt one wide extraction result to one row per (site, layer).

    Columns matching ``layer_filter`` are melted; every other column is site
    metadata repeated on each row.

    Returns:
        DataFrame with columns ``<metadata...>, period, layer, value``
    """
    config = get_config()
    layer_filter = layer_filter or config.grid.layer_filter
    period_column = period_column or config.reshape.period_column
    value_column = value_column or config.reshape.value_column

    value_vars = layer_columns(wide, layer_filter)
    if not value_vars:
        raise LayerNameError(
            ",".join(map(str, wide.columns)),
            f"no column matches layer filter {layer_filter!r}",
        )
    id_vars = [c for c in wide.columns if c not in value_vars]

    melted = wide.melt(
        id_vars=id_vars,
        value_vars=value_vars,
        var_name=LAYER_COLUMN,
        value_name=value_column,
    )
    melted.insert(len(id_vars), period_column, period)
    return melted


def pivot_layers(
    melted: pd.DataFrame,
    period_column: Optional[str] = None,
    value_column: Optional[str] = None,
) -> pd.DataFrame:
    """Turn a melted table back into one column per layer."""
    config = get_config()
    period_column = period_column or config.reshape.period_column
    value_column = value_column or config.reshape.value_column

    id_vars = [c for c in melted.columns if c not in (period_column, LAYER_COLUMN, value_column)]
    layers = list(dict.fromkeys(melted[LAYER_COLUMN]))

    # Melt writes one block per layer with the sites in table order, so the
    # position within a block identifies the row even when metadata repeats.
    row = melted.groupby(LAYER_COLUMN, sort=False).cumcount()
    values = melted.assign(_row=row).pivot(index="_row", columns=LAYER_COLUMN, values=value_column)
    values.columns.name = None

    sites = melted.loc[melted[LAYER_COLUMN] == layers[0], id_vars].reset_index(drop=True)
    wide = pd.concat([sites, values[layers].reset_index(drop=True)], axis=1)
    return wide[id_vars + layers]


def sort_long_table(
    table: pd.DataFrame,
    site_columns: list[str],
    config: Optional[ReshapeConfig] = None,
) -> pd.DataFrame:
    """Sort by site columns, then year/month compared as numbers."""
    config = config or get_config().reshape
    if config.sort_order == "chronological":
        time_columns = [config.year_column, config.month_column]
    else:
        time_columns = [config.month_column, config.year_column]

    def numeric_key(column: pd.Series) -> pd.Series:
        if column.name in time_columns:
            return pd.to_numeric(column)
        return column

    return table.sort_values(
        site_columns + time_columns,
        key=numeric_key,
        kind="mergesort",
    ).reset_index(drop=True)


def tidy_extractions(
    wide_by_period: Mapping[str, pd.DataFrame],
    site_columns: Optional[list[str]] = None,
    grid_config: Optional[GridConfig] = None,
    reshape_config: Optional[ReshapeConfig] = None,
) -> pd.DataFrame:
    """Combine per-period wide extraction results into one tidy table.

    Parameters
    ----------
    wide_by_period : mapping of str to DataFrame
        Wide extraction result for each sub-period label.
    site_columns : list of str, optional
        Sort keys identifying a site, usually the identifier and category
        columns. Defaults to the configured site table columns.

    Returns
    -------
    DataFrame
        Columns ``<site metadata...>, period, value, month, year`` sorted by
        site and then numerically by year and month.

    Raises
    ------
    LayerNameError
        If any layer name breaks the naming convention. The whole batch fails.
    """
    config = get_config()
    grid_config = grid_config or config.grid
    reshape_config = reshape_config or config.reshape
    if site_columns is None:
        site_columns = [config.sites.id_column, config.sites.category_column]

    if not wide_by_period:
        raise ValueError("No extraction results provided for reshaping")

    melted = [
        melt_extraction(
            wide,
            period,
            layer_filter=grid_config.layer_filter,
            period_column=reshape_config.period_column,
            value_column=reshape_config.value_column,
        )
        for period, wide in wide_by_period.items()
    ]
    long_table = pd.concat(melted, ignore_index=True)

    parsed = {
        name: parse_layer_name(name, grid_config.layer_name_pattern)
        for name in long_table[LAYER_COLUMN].unique()
    }
    long_table[reshape_config.month_column] = long_table[LAYER_COLUMN].map(
        lambda n: parsed[n].month
    )
    long_table[reshape_config.year_column] = long_table[LAYER_COLUMN].map(
        lambda n: parsed[n].year
    )
    long_table = long_table.drop(columns=[LAYER_COLUMN])

    missing = [c for c in site_columns if c not in long_table.columns]
    if missing:
        raise ValueError(f"Sort columns not found in extraction results: {missing}")

    result = sort_long_table(long_table, site_columns, reshape_config)
    console.print(
        f"[green]Tidy table: {len(result)} rows from {len(wide_by_period)} periods[/green]"
    )
    return result
