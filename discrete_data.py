from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union
import numpy as np
import pandas as pd


@dataclass(frozen=True, slots=True)
class DiscreteData:
    """
    Fully observed discrete dataset, encoded as integer codes.

    values[i, j] is the code of attribute j in row i, in 0..cardinalities[j]-1.
    The codes follow the sorted categories of each column.
    """
    values: np.ndarray
    names: tuple[str, ...]
    cardinalities: tuple[int, ...]
    categories: tuple[tuple[Any, ...], ...]
    class_index: int
    weights: np.ndarray

    @classmethod
    def from_frame(cls,
                   df: pd.DataFrame,
                   class_column: Optional[Union[str, int]] = None,
                   *,
                   weights: Optional[Union[str, Sequence[float], np.ndarray]] = None) -> DiscreteData:
        if df.shape[1] == 0:
            raise ValueError("DataFrame has no columns")

        frame = df
        if isinstance(weights, str):
            if weights not in df.columns:
                raise ValueError(f"Weight column {weights!r} not found in data")
            w = df[weights].to_numpy(dtype=float)
            frame = df.drop(columns=[weights])
        elif weights is not None:
            w = np.asarray(weights, dtype=float)
        else:
            w = np.ones(len(df), dtype=float)

        if w.shape != (len(frame),):
            raise ValueError(f"Expected {len(frame)} weights, got shape {w.shape}")
        if np.any(w <= 0) or not np.all(np.isfinite(w)):
            raise ValueError("Instance weights must be finite and strictly positive")

        names = tuple(str(c) for c in frame.columns)
        if class_column is None:
            class_index = len(names) - 1
        elif isinstance(class_column, int) and not isinstance(class_column, bool):
            if not 0 <= class_column < len(names):
                raise ValueError(f"Class index {class_column} out of range for {len(names)} attributes")
            class_index = class_column
        elif str(class_column) in names:
            class_index = names.index(str(class_column))
        else:
            raise ValueError(f"Class column {class_column!r} not found in data")

        codes, cards, cats = [], [], []
        for col in frame.columns:
            series = frame[col]
            if series.isna().any():
                raise ValueError(f"Column {col!r} has missing values; only fully observed data is supported")
            if isinstance(series.dtype, pd.CategoricalDtype):
                categorical = series.cat.remove_unused_categories().array
            else:
                levels = series.unique().tolist()
                try:
                    levels = sorted(levels)
                except TypeError:
                    # mixed types, e.g. an object column read from CSV
                    levels = sorted(levels, key=lambda v: (type(v).__name__, str(v)))
                categorical = pd.Categorical(series, categories=levels, ordered=False)
            codes.append(np.asarray(categorical.codes, dtype=np.int64))
            cats.append(tuple(categorical.categories.tolist()))
            cards.append(max(1, len(categorical.categories)))

        values = np.column_stack(codes) if len(frame) else np.zeros((0, len(names)), dtype=np.int64)
        return cls(values=values,
                   names=names,
                   cardinalities=tuple(cards),
                   categories=tuple(cats),
                   class_index=class_index,
                   weights=w)

    @property
    def num_instances(self) -> int:
        return self.values.shape[0]

    @property
    def num_attributes(self) -> int:
        return len(self.names)

    @property
    def total_weight(self) -> float:
        return float(self.weights.sum())

    def value(self, row: int, attribute: int) -> int:
        return int(self.values[row, attribute])

    def index_of(self, name: str) -> int:
        try:
            return self.names.index(name)
        except ValueError:
            raise KeyError(f"Unknown attribute {name!r}") from None
