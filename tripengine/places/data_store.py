from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from ..catalog import Category
from ..config import DEFAULT_ENGINE_CONFIG
from .categories import primary_category
from .models import Coordinates, DayTime, OpeningHours, OpeningPeriod, Place
from .search import SearchFilters

_EARTH_RADIUS_M = 6_371_000.0


def _load(csv_path: Path) -> pd.DataFrame:
    df = pd.read_csv(csv_path, dtype={"id": str, "open_days": str, "open_time": str, "close_time": str})

    # Pre-split provider types and derive the primary category once
    df["types_list"] = (
        df["types"]
        .fillna("")
        .apply(lambda s: [t.strip().lower() for t in s.split("|") if t.strip()])
    )
    df["category"] = df["types_list"].apply(lambda types: primary_category(types).value)
    return df


def _opening_hours(row: pd.Series) -> OpeningHours | None:
    days = row.get("open_days")
    if not isinstance(days, str) or not days:
        return None
    periods = [
        OpeningPeriod(
            open=DayTime(day=int(d), time=row["open_time"]),
            close=DayTime(day=int(d), time=row["close_time"]),
        )
        for d in days
    ]
    return OpeningHours(periods=periods)


def _row_to_place(row: pd.Series) -> Place:
    return Place(
        id=str(row["id"]),
        name=row["name"],
        coordinates=Coordinates(lat=float(row["lat"]), lng=float(row["lng"])),
        types=row["types_list"],
        category=Category(row["category"]),
        rating=float(row["rating"]) if pd.notna(row["rating"]) else None,
        review_count=int(row["review_count"]) if pd.notna(row["review_count"]) else None,
        price_level=int(row["price_level"]) if pd.notna(row["price_level"]) else None,
        opening_hours=_opening_hours(row),
        address=row["address"] if pd.notna(row.get("address")) else None,
        area=row["area"] if pd.notna(row.get("area")) else None,
        description=row["description"] if pd.notna(row.get("description")) else None,
    )


class DataFramePlacesSearch:
    """Places Search provider backed by a local CSV dataset, loaded on first use."""

    def __init__(self, csv_path: Path | None = None) -> None:
        self.csv_path = csv_path or DEFAULT_ENGINE_CONFIG.places_csv
        self._df: pd.DataFrame | None = None

    def get_dataframe(self) -> pd.DataFrame:
        if self._df is None:
            self._df = _load(self.csv_path)
        return self._df

    def distances_m(self, df: pd.DataFrame, location: Coordinates) -> np.ndarray:
        lat1 = np.radians(location.lat)
        lng1 = np.radians(location.lng)
        lat2 = np.radians(df["lat"].to_numpy(dtype=float))
        lng2 = np.radians(df["lng"].to_numpy(dtype=float))
        a = (
            np.sin((lat2 - lat1) / 2) ** 2
            + np.cos(lat1) * np.cos(lat2) * np.sin((lng2 - lng1) / 2) ** 2
        )
        return 2 * _EARTH_RADIUS_M * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    async def search(
        self,
        location: Coordinates,
        radius: int,
        categories: list[Category],
        filters: SearchFilters,
    ) -> list[Place]:
        df = self.get_dataframe()
        if df.empty:
            return []

        # --- Hard filters ---
        mask = pd.Series(self.distances_m(df, location) <= radius, index=df.index)
        if categories:
            mask = mask & df["category"].isin([c.value for c in categories])
        if filters.min_rating is not None:
            mask = mask & (df["rating"] >= filters.min_rating)
        if filters.max_price_level is not None:
            mask = mask & (df["price_level"].isna() | (df["price_level"] <= filters.max_price_level))

        candidates = df.loc[mask]
        top = candidates.sort_values("rating", ascending=False, na_position="last").head(filters.limit)
        return [_row_to_place(row) for _, row in top.iterrows()]
