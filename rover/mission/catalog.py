"""Static catalog of mission profiles."""

from types import MappingProxyType

from rover.exceptions import ProfileNotFoundError
from rover.mission.models import MissionProfile, WaypointTemplate


def _waypoints(*entries: tuple[float, float, str, float]) -> tuple[WaypointTemplate, ...]:
    return tuple(
        WaypointTemplate(x=x, y=y, task=task, dwell_seconds=dwell)
        for x, y, task, dwell in entries
    )


_PROFILES: tuple[MissionProfile, ...] = (
    MissionProfile(
        key="geological",
        name="Geological Survey",
        expected_duration_hours=4.5,
        expected_distance_meters=150.0,
        waypoints=_waypoints(
            (100, 100, "Start Position", 2),
            (180, 150, "Soil Sample", 25),
            (250, 120, "Rock Analysis", 30),
            (320, 180, "Geological Imaging", 20),
            (400, 140, "Core Drilling", 45),
            (450, 220, "Atmospheric Measurement", 15),
            (380, 280, "Documentation", 20),
        ),
    ),
    MissionProfile(
        key="rescue",
        name="Search & Rescue",
        expected_duration_hours=2.0,
        expected_distance_meters=200.0,
        waypoints=_waypoints(
            (100, 100, "Deployment", 1),
            (160, 140, "Search Area 1", 15),
            (220, 180, "Search Area 2", 20),
            (280, 160, "Target Investigation", 30),
            (340, 200, "Casualty Assessment", 25),
            (400, 250, "Emergency Beacon", 5),
        ),
    ),
    MissionProfile(
        key="infrastructure",
        name="Infrastructure Inspection",
        expected_duration_hours=6.0,
        expected_distance_meters=300.0,
        waypoints=_waypoints(
            (100, 100, "Calibration", 5),
            (140, 130, "Pipeline Inspection", 40),
            (180, 170, "Valve Assessment", 30),
            (220, 150, "Structural Scan", 35),
            (260, 190, "Thermal Imaging", 25),
            (300, 220, "Vibration Analysis", 30),
            (340, 210, "Corrosion Detection", 35),
            (380, 250, "Final Report", 15),
        ),
    ),
)

MISSION_PROFILES: MappingProxyType[str, MissionProfile] = MappingProxyType(
    {profile.key: profile for profile in _PROFILES}
)

DEFAULT_PROFILE_KEY = "geological"


def get_profile(profile_key: str) -> MissionProfile:
    """Look up a mission profile by key.

    Args:
        profile_key: Catalog key, e.g. ``"rescue"``.

    Returns:
        The matching mission profile.

    Raises:
        ProfileNotFoundError: If the key is not in the catalog.
    """
    profile = MISSION_PROFILES.get(profile_key)
    if profile is None:
        raise ProfileNotFoundError(
            f'Mission profile "{profile_key}" not found. Please select another.',
            profile_key=profile_key,
        )
    return profile


def list_profile_keys() -> list[str]:
    """Return the catalog keys in definition order."""
    return list(MISSION_PROFILES)
