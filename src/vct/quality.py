"""Per-year quality flags and gap filling of the index series.

A year is BAD when its mask marks it as fillable (cloud, shadow, snow and
their edges) or when it looks like an unflagged cloud/shadow relative to
its neighbours. When more than half of the years are GOOD, BAD years are
linearly interpolated between the nearest GOOD years, or extended from the
only available side at the ends of the series.
"""
from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from .stats import fi_roughness, interpolate_values
from .types import B4, B5, B7, BT, COMP, FILL_CLASSES, N_BANDS, NDVI, Quality


@dataclass(frozen=True)
class QualityStats:
    pct_good_obs: int
    u_range: float
    v_range: float
    fi_range: float
    fi_rough: float


def is_relative_cloud(ud: np.ndarray, i: int) -> bool:
    comp, bt = ud[COMP], ud[BT]
    return bool(
        (comp[i] > comp[i - 1] + 3.5 or comp[i] > comp[i + 1] + 3.5)
        and comp[i] > comp[i - 1] + 2.5
        and comp[i] > comp[i + 1] + 2.5
        and bt[i] < bt[i - 1] - 1.0
        and bt[i] < bt[i + 1] - 1.0
        and bt[i] < 0.5
    )


def is_relative_shadow(ud: np.ndarray, i: int) -> bool:
    comp = ud[COMP]
    return bool(
        (comp[i] < comp[i - 1] - 3.5 or comp[i] < comp[i + 1] - 3.5)
        and comp[i] < comp[i - 1] - 2.5
        and comp[i] < comp[i + 1] - 2.5
        and ud[B4, i] < 1.0
        and ud[B5, i] < 1.0
        and ud[B7, i] < 1.0
    )


def is_bad_endpoint(ud: np.ndarray, i: int, j: int) -> bool:
    """One-sided cloud/shadow test of endpoint i against its neighbour j."""
    comp, bt = ud[COMP], ud[BT]
    cloud = comp[i] > comp[j] + 3.5 and bt[i] < bt[j] - 1.5 and bt[i] < 0.5
    shadow = comp[i] < comp[j] - 3.5 and ud[B5, i] < 1.0 and ud[B7, i] < 1.0 and ud[B4, i] < 1.0
    return bool(cloud or shadow)


def flag_quality(ud: np.ndarray, mask: np.ndarray, q_flag: np.ndarray, num_years: int) -> int:
    """Fill q_flag for the active years and return the number of BAD years."""
    for i in range(num_years):
        if mask[i] != 0 and mask[i] <= FILL_CLASSES:
            q_flag[i] = Quality.BAD
        else:
            q_flag[i] = Quality.GOOD

    for i in range(1, num_years - 1):
        if q_flag[i] == Quality.BAD:
            continue
        if is_relative_cloud(ud, i) or is_relative_shadow(ud, i):
            q_flag[i] = Quality.BAD

    n = num_years
    if n >= 2:
        if q_flag[0] == Quality.GOOD and is_bad_endpoint(ud, 0, 1):
            q_flag[0] = Quality.BAD
        if q_flag[n - 1] == Quality.GOOD and is_bad_endpoint(ud, n - 1, n - 2):
            q_flag[n - 1] = Quality.BAD

    return int(np.count_nonzero(q_flag[:n] == Quality.BAD))


def fill_bad_years(ud: np.ndarray, q_flag: np.ndarray, num_years: int) -> None:
    """Replace BAD years in every band, in place."""
    i = 0
    while i < num_years:
        if q_flag[i] == Quality.GOOD:
            i += 1
            continue

        prev = i - 1
        nxt = i + 1
        while prev >= 0 and q_flag[prev] == Quality.BAD:
            prev -= 1
        while nxt < num_years and q_flag[nxt] == Quality.BAD:
            nxt += 1

        if prev < 0 and nxt >= num_years:
            # nothing to fill from
            break
        elif prev < 0:
            for j in range(0, nxt):
                ud[:N_BANDS, j] = ud[:N_BANDS, nxt]
        elif nxt >= num_years:
            for j in range(prev + 1, num_years):
                ud[:N_BANDS, j] = ud[:N_BANDS, prev]
        else:
            for k in range(N_BANDS):
                interpolate_values(ud[k], prev, nxt)
        i = nxt + 1


def interpolate_series(ud: np.ndarray, mask: np.ndarray, q_flag: np.ndarray, num_years: int) -> QualityStats:
    bad_count = flag_quality(ud, mask, q_flag, num_years)
    pct_good_obs = int(100.0 - (100.0 * bad_count) / num_years)

    if pct_good_obs > 50.0:
        fill_bad_years(ud, q_flag, num_years)

    comp = ud[COMP, :num_years]
    ndvi = ud[NDVI, :num_years]
    u_range = float(comp.max() - comp.min())
    v_range = float(ndvi.max() - ndvi.min())
    fi_rough = min(fi_roughness(ud[COMP], 0, num_years), 25.4)

    return QualityStats(
        pct_good_obs=pct_good_obs,
        u_range=u_range,
        v_range=v_range,
        fi_range=u_range,
        fi_rough=fi_rough,
    )
