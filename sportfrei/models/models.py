"""
Data models for SportFrei application
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict
from datetime import datetime, timezone


EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def parse_strava_datetime(value: Optional[str]) -> datetime:
    """
    Parse a Strava ISO-8601 timestamp into an aware datetime

    Strava reports start_date_local with a trailing "Z" even though the
    wall-clock value is local time, so the result is tagged UTC either way.

    Args:
        value: Timestamp such as "2024-01-15T07:30:00Z"

    Returns:
        Timezone-aware datetime, or the Unix epoch if the value is missing
    """
    if not value:
        return EPOCH
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _format_strava_datetime(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class Athlete:
    """Strava athlete profile"""
    athlete_id: int
    firstname: str = ""
    lastname: str = ""
    username: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    profile: Optional[str] = None

    @property
    def display_name(self) -> str:
        """First and last name, falling back to username"""
        name = f"{self.firstname} {self.lastname}".strip()
        return name or (self.username or "Athlete")

    @classmethod
    def from_api_response(cls, data: Dict) -> 'Athlete':
        """Create Athlete from Strava API response"""
        return cls(
            athlete_id=data.get("id", 0),
            firstname=data.get("firstname") or "",
            lastname=data.get("lastname") or "",
            username=data.get("username"),
            city=data.get("city"),
            country=data.get("country"),
            profile=data.get("profile") or data.get("profile_medium")
        )

    def to_dict(self) -> Dict:
        """Convert to dictionary"""
        return {
            "id": self.athlete_id,
            "firstname": self.firstname,
            "lastname": self.lastname,
            "username": self.username,
            "city": self.city,
            "country": self.country,
            "profile": self.profile
        }


@dataclass
class ActivityTotals:
    """Aggregate totals for one sport over one period"""
    count: int = 0
    distance: float = 0.0  # meters
    moving_time: int = 0  # seconds
    elapsed_time: int = 0  # seconds
    elevation_gain: float = 0.0  # meters

    @classmethod
    def from_api_response(cls, data: Optional[Dict]) -> 'ActivityTotals':
        """Create ActivityTotals from a Strava *_totals object"""
        data = data or {}
        return cls(
            count=data.get("count", 0),
            distance=data.get("distance", 0.0),
            moving_time=data.get("moving_time", 0),
            elapsed_time=data.get("elapsed_time", 0),
            elevation_gain=data.get("elevation_gain", 0.0)
        )

    def to_dict(self) -> Dict:
        """Convert to dictionary"""
        return {
            "count": self.count,
            "distance": self.distance,
            "moving_time": self.moving_time,
            "elapsed_time": self.elapsed_time,
            "elevation_gain": self.elevation_gain
        }


@dataclass
class AthleteStats:
    """Snapshot of the athlete's all-time, year-to-date and recent totals"""
    biggest_ride_distance: Optional[float] = None
    biggest_climb_elevation_gain: Optional[float] = None
    recent_run_totals: ActivityTotals = field(default_factory=ActivityTotals)
    recent_ride_totals: ActivityTotals = field(default_factory=ActivityTotals)
    ytd_run_totals: ActivityTotals = field(default_factory=ActivityTotals)
    ytd_ride_totals: ActivityTotals = field(default_factory=ActivityTotals)
    all_run_totals: ActivityTotals = field(default_factory=ActivityTotals)
    all_ride_totals: ActivityTotals = field(default_factory=ActivityTotals)

    @classmethod
    def from_api_response(cls, data: Dict) -> 'AthleteStats':
        """Create AthleteStats from the /athletes/{id}/stats response"""
        return cls(
            biggest_ride_distance=data.get("biggest_ride_distance"),
            biggest_climb_elevation_gain=data.get("biggest_climb_elevation_gain"),
            recent_run_totals=ActivityTotals.from_api_response(data.get("recent_run_totals")),
            recent_ride_totals=ActivityTotals.from_api_response(data.get("recent_ride_totals")),
            ytd_run_totals=ActivityTotals.from_api_response(data.get("ytd_run_totals")),
            ytd_ride_totals=ActivityTotals.from_api_response(data.get("ytd_ride_totals")),
            all_run_totals=ActivityTotals.from_api_response(data.get("all_run_totals")),
            all_ride_totals=ActivityTotals.from_api_response(data.get("all_ride_totals"))
        )

    def to_dict(self) -> Dict:
        """Convert to dictionary"""
        return {
            "biggest_ride_distance": self.biggest_ride_distance,
            "biggest_climb_elevation_gain": self.biggest_climb_elevation_gain,
            "recent_run_totals": self.recent_run_totals.to_dict(),
            "recent_ride_totals": self.recent_ride_totals.to_dict(),
            "ytd_run_totals": self.ytd_run_totals.to_dict(),
            "ytd_ride_totals": self.ytd_ride_totals.to_dict(),
            "all_run_totals": self.all_run_totals.to_dict(),
            "all_ride_totals": self.all_ride_totals.to_dict()
        }


@dataclass(frozen=True)
class Activity:
    """Summary of one recorded activity, as listed by /athlete/activities"""
    activity_id: int
    name: str
    activity_type: str
    sport_type: str
    start_date_local: datetime
    distance: float = 0.0  # meters
    moving_time: int = 0  # seconds
    elapsed_time: int = 0  # seconds
    total_elevation_gain: float = 0.0  # meters
    average_speed: Optional[float] = None  # m/s
    max_speed: Optional[float] = None  # m/s
    average_heartrate: Optional[float] = None  # BPM
    max_heartrate: Optional[float] = None  # BPM
    calories: Optional[float] = None
    start_date: Optional[datetime] = None
    timezone: str = ""
    description: Optional[str] = None
    kudos_count: Optional[int] = None
    commute: Optional[bool] = None
    manual: Optional[bool] = None
    private: Optional[bool] = None
    gear_id: Optional[str] = None

    @property
    def is_run(self) -> bool:
        """True when either type tag says Run"""
        return self.sport_type == "Run" or self.activity_type == "Run"

    @classmethod
    def from_api_response(cls, data: Dict) -> 'Activity':
        """Create Activity from a Strava SummaryActivity object"""
        start_date = data.get("start_date")
        return cls(
            activity_id=data.get("id", 0),
            name=data.get("name") or "",
            activity_type=data.get("type") or "",
            sport_type=data.get("sport_type") or data.get("type") or "",
            start_date_local=parse_strava_datetime(data.get("start_date_local") or start_date),
            distance=data.get("distance") or 0.0,
            moving_time=data.get("moving_time") or 0,
            elapsed_time=data.get("elapsed_time") or 0,
            total_elevation_gain=data.get("total_elevation_gain") or 0.0,
            average_speed=data.get("average_speed"),
            max_speed=data.get("max_speed"),
            average_heartrate=data.get("average_heartrate"),
            max_heartrate=data.get("max_heartrate"),
            calories=data.get("calories"),
            start_date=parse_strava_datetime(start_date) if start_date else None,
            timezone=data.get("timezone") or "",
            description=data.get("description"),
            kudos_count=data.get("kudos_count"),
            commute=data.get("commute"),
            manual=data.get("manual"),
            private=data.get("private"),
            gear_id=data.get("gear_id")
        )

    def to_dict(self) -> Dict:
        """Convert to dictionary using Strava field names"""
        return {
            "id": self.activity_id,
            "name": self.name,
            "type": self.activity_type,
            "sport_type": self.sport_type,
            "start_date_local": _format_strava_datetime(self.start_date_local),
            "start_date": _format_strava_datetime(self.start_date) if self.start_date else None,
            "timezone": self.timezone,
            "distance": self.distance,
            "moving_time": self.moving_time,
            "elapsed_time": self.elapsed_time,
            "total_elevation_gain": self.total_elevation_gain,
            "average_speed": self.average_speed,
            "max_speed": self.max_speed,
            "average_heartrate": self.average_heartrate,
            "max_heartrate": self.max_heartrate,
            "calories": self.calories,
            "description": self.description,
            "kudos_count": self.kudos_count,
            "commute": self.commute,
            "manual": self.manual,
            "private": self.private,
            "gear_id": self.gear_id
        }


@dataclass
class Split:
    """One kilometer (or mile) split of an activity"""
    split: int
    distance: float = 0.0  # meters
    elapsed_time: int = 0
    moving_time: int = 0
    elevation_difference: float = 0.0
    average_speed: Optional[float] = None
    pace_zone: Optional[int] = None

    @classmethod
    def from_api_response(cls, data: Dict) -> 'Split':
        """Create Split from a Strava splits_metric entry"""
        return cls(
            split=data.get("split", 0),
            distance=data.get("distance") or 0.0,
            elapsed_time=data.get("elapsed_time") or 0,
            moving_time=data.get("moving_time") or 0,
            elevation_difference=data.get("elevation_difference") or 0.0,
            average_speed=data.get("average_speed"),
            pace_zone=data.get("pace_zone")
        )


@dataclass
class Lap:
    """A recorded lap"""
    lap_id: int
    name: str
    lap_index: int = 0
    distance: float = 0.0
    elapsed_time: int = 0
    moving_time: int = 0
    average_speed: float = 0.0
    max_speed: float = 0.0
    average_heartrate: Optional[float] = None
    max_heartrate: Optional[float] = None

    @classmethod
    def from_api_response(cls, data: Dict) -> 'Lap':
        """Create Lap from a Strava laps entry"""
        return cls(
            lap_id=data.get("id", 0),
            name=data.get("name") or "",
            lap_index=data.get("lap_index", 0),
            distance=data.get("distance") or 0.0,
            elapsed_time=data.get("elapsed_time") or 0,
            moving_time=data.get("moving_time") or 0,
            average_speed=data.get("average_speed") or 0.0,
            max_speed=data.get("max_speed") or 0.0,
            average_heartrate=data.get("average_heartrate"),
            max_heartrate=data.get("max_heartrate")
        )


@dataclass
class DetailedActivity:
    """Activity with splits and laps, as returned by /activities/{id}"""
    activity: Activity
    splits_metric: List[Split] = field(default_factory=list)
    laps: List[Lap] = field(default_factory=list)

    @classmethod
    def from_api_response(cls, data: Dict) -> 'DetailedActivity':
        """Create DetailedActivity from Strava API response"""
        return cls(
            activity=Activity.from_api_response(data),
            splits_metric=[Split.from_api_response(s) for s in data.get("splits_metric") or []],
            laps=[Lap.from_api_response(lap) for lap in data.get("laps") or []]
        )
