# webapp/services/nba_validation.py
"""
Row schemas for stats.nba.com result sets.

Upstream answers look like::

    {"resultSets": [{"name": "PlayerIndex", "headers": [...], "rowSet": [[...], ...]}]}

``normalize`` picks one result set by name, zips each positional row with the
(uppercased) headers and validates it against a row model. Rows that do not
validate are dropped and counted; a body without the envelope is an error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from webapp.errors import MalformedPayloadError

PLAYER_INDEX_RESULT_SET = "PlayerIndex"
PLAYER_GAME_LOG_RESULT_SET = "PlayerGameLog"


class _Row(BaseModel):
    # aliases are the upstream headers; attribute names are what we cache
    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
        frozen=True,
    )


class PlayerIndexRow(_Row):
    person_id: int = Field(alias="PERSON_ID")
    last_name: str = Field(alias="PLAYER_LAST_NAME")
    first_name: str = Field(alias="PLAYER_FIRST_NAME")
    slug: str = Field(alias="PLAYER_SLUG")
    team_id: Optional[int] = Field(default=None, alias="TEAM_ID")
    team_slug: Optional[str] = Field(default=None, alias="TEAM_SLUG")
    team_city: Optional[str] = Field(default=None, alias="TEAM_CITY")
    team_name: Optional[str] = Field(default=None, alias="TEAM_NAME")
    position: Optional[str] = Field(default=None, alias="POSITION")
    jersey_number: Optional[str] = Field(default=None, alias="JERSEY_NUMBER")
    roster_status: Optional[str] = Field(default=None, alias="ROSTER_STATUS")
    height: Optional[str] = Field(default=None, alias="HEIGHT")
    weight: Optional[str] = Field(default=None, alias="WEIGHT")
    from_year: Optional[str] = Field(default=None, alias="FROM_YEAR")
    to_year: Optional[str] = Field(default=None, alias="TO_YEAR")
    points: Optional[float] = Field(default=None, alias="PTS")
    rebounds: Optional[float] = Field(default=None, alias="REB")
    assists: Optional[float] = Field(default=None, alias="AST")
    stats_timeframe: Optional[str] = Field(default=None, alias="STATS_TIMEFRAME")


class PlayerGameLogRow(_Row):
    season_id: str = Field(alias="SEASON_ID")
    player_id: int = Field(alias="PLAYER_ID")
    game_id: str = Field(alias="GAME_ID")
    game_date: str = Field(alias="GAME_DATE")
    matchup: str = Field(alias="MATCHUP")
    result: Optional[str] = Field(default=None, alias="WL")
    minutes: Optional[int] = Field(default=None, alias="MIN")
    fgm: Optional[int] = Field(default=None, alias="FGM")
    fga: Optional[int] = Field(default=None, alias="FGA")
    fg3m: Optional[int] = Field(default=None, alias="FG3M")
    fg3a: Optional[int] = Field(default=None, alias="FG3A")
    ftm: Optional[int] = Field(default=None, alias="FTM")
    fta: Optional[int] = Field(default=None, alias="FTA")
    o_reb: Optional[int] = Field(default=None, alias="OREB")
    d_reb: Optional[int] = Field(default=None, alias="DREB")
    rebounds: Optional[int] = Field(default=None, alias="REB")
    assists: Optional[int] = Field(default=None, alias="AST")
    steals: Optional[int] = Field(default=None, alias="STL")
    blocks: Optional[int] = Field(default=None, alias="BLK")
    turnovers: Optional[int] = Field(default=None, alias="TOV")
    personal_fouls: Optional[int] = Field(default=None, alias="PF")
    points: Optional[int] = Field(default=None, alias="PTS")
    plus_minus: Optional[int] = Field(default=None, alias="PLUS_MINUS")
    fg_pct: Optional[float] = Field(default=None, alias="FG_PCT")
    ft_pct: Optional[float] = Field(default=None, alias="FT_PCT")
    three_pt_pct: Optional[float] = Field(default=None, alias="FG3_PCT")
    video_available: Optional[int] = Field(default=None, alias="VIDEO_AVAILABLE")


class ResultSet(BaseModel):
    name: str
    headers: List[str]
    rowSet: List[Any]


class ResultSetsResponse(BaseModel):
    resultSets: List[ResultSet]


RowT = TypeVar("RowT", bound=_Row)


@dataclass
class NormalizeResult(Generic[RowT]):
    records: List[RowT] = field(default_factory=list)
    dropped: int = 0


def materialize_rows(
    headers: Sequence[str],
    rows: Sequence[Any],
    model: Type[RowT],
) -> NormalizeResult[RowT]:
    """
    Zip positional rows with headers and validate each one.
    Invalid rows are counted in ``dropped``, never raised.
    """
    normalized_headers = [str(h).upper() for h in headers]
    result: NormalizeResult[RowT] = NormalizeResult()

    for row in rows:
        if not isinstance(row, (list, tuple)):
            result.dropped += 1
            continue
        mapping = dict(zip(normalized_headers, row))
        try:
            result.records.append(model.model_validate(mapping))
        except ValidationError:
            result.dropped += 1

    return result


def normalize(raw: Any, result_set_name: str, model: Type[RowT]) -> NormalizeResult[RowT]:
    try:
        parsed = ResultSetsResponse.model_validate(raw)
    except ValidationError as exc:
        raise MalformedPayloadError(
            f"response has no usable resultSets (expected {result_set_name!r})"
        ) from exc

    for result_set in parsed.resultSets:
        if result_set.name == result_set_name:
            return materialize_rows(result_set.headers, result_set.rowSet, model)

    # upstream omits empty sets
    return NormalizeResult()


def normalize_player_index(raw: Any) -> List[PlayerIndexRow]:
    return normalize(raw, PLAYER_INDEX_RESULT_SET, PlayerIndexRow).records


def normalize_player_game_logs(raw: Any) -> List[PlayerGameLogRow]:
    return normalize(raw, PLAYER_GAME_LOG_RESULT_SET, PlayerGameLogRow).records
