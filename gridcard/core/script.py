"""Spoken-word scripts for the card. Pure functions: same input, same text."""
from typing import List, Optional, Sequence

from gridcard.models.card import Chapter, Track
from gridcard.models.race import DriverStanding, RaceRecord, TeamStanding, WeatherReport

NEXT_RACE_CHAPTER_TITLE = "Next F1 Race"

_CIRCUIT_TYPES = {
    "Permanent": "a permanent racing circuit",
    "Temporary - Street": "a temporary street circuit",
    "Temporary - Road": "a temporary road circuit",
}


def describe_circuit_type(circuit_type: Optional[str]) -> Optional[str]:
    """Spoken description of an OpenF1 circuit type, or None if unknown."""
    if not circuit_type or circuit_type == "Unknown":
        return None
    return _CIRCUIT_TYPES.get(circuit_type, "a racing circuit")


def _when(race: RaceRecord) -> Optional[str]:
    if race.date and race.time:
        return f"The race will be held on {race.date}, at {race.time}."
    if race.date:
        return f"The race will be held on {race.date}."
    if race.time:
        return f"The race starts at {race.time}."
    return None


def _weather(weather: Optional[WeatherReport]) -> Optional[str]:
    if weather is None:
        return None
    return (
        f"Right now in {weather.location} it is {weather.temperature} degrees Celsius, "
        f"with {weather.description}. "
        f"The humidity is {weather.humidity} percent, "
        f"and the wind is blowing at {weather.wind_speed} meters per second."
    )


def next_race_text(race: RaceRecord, weather: Optional[WeatherReport] = None) -> str:
    """Narration for the upcoming race; sentences for missing fields are left out."""
    season = f"in the {race.year} season" if race.year else "of the season"
    paragraphs = [f"Hello Formula 1 fans! Let me tell you about the next race {season}."]

    if race.location:
        paragraphs.append(f"The next race is the {race.name}, taking place in {race.location}.")
    else:
        paragraphs.append(f"The next race is the {race.name}.")

    circuit_kind = describe_circuit_type(race.circuit_type)
    if circuit_kind and race.circuit:
        paragraphs.append(f"{race.circuit} is {circuit_kind}.")
    elif circuit_kind:
        paragraphs.append(f"This time the cars race on {circuit_kind}.")

    for sentence in (_when(race), _weather(weather)):
        if sentence:
            paragraphs.append(sentence)

    if race.circuit:
        paragraphs.append(f"Get ready for an exciting race at {race.circuit}!")
    else:
        paragraphs.append("Get ready for an exciting race!")
    return "\n\n".join(paragraphs)


def drivers_text(drivers: Sequence[DriverStanding]) -> str:
    if not drivers:
        return (
            "Now let's look at the current driver standings.\n\n"
            "The driver standings are not available right now. Check back soon!"
        )
    listing = " ".join(
        f"In position {d.position}, {d.driver} from {d.team}, with {d.points} points."
        for d in drivers
    )
    return (
        "Now let's look at the current driver standings.\n\n"
        f"Here are the top {len(drivers)} drivers in the championship.\n\n"
        f"{listing}\n\n"
        "What an exciting season it's been!"
    )


def teams_text(teams: Sequence[TeamStanding]) -> str:
    if not teams:
        return (
            "Finally, let's check out the constructor's championship.\n\n"
            "The team standings are not available right now.\n\n"
            "Thank you for listening! Enjoy the racing!"
        )
    listing = " ".join(f"In position {t.position}, {t.team}, with {t.points} points." for t in teams)
    return (
        "Finally, let's check out the constructor's championship.\n\n"
        f"Here are the top {len(teams)} teams competing for glory.\n\n"
        f"{listing}\n\n"
        "Thank you for listening! Enjoy the racing!"
    )


def build_race_chapters(
    race: RaceRecord,
    weather: Optional[WeatherReport] = None,
    icon: Optional[str] = None,
) -> List[Chapter]:
    """Single chapter with one track about the next race."""
    track = Track(title=race.name, text=next_race_text(race, weather), icon=icon)
    return [Chapter(title=NEXT_RACE_CHAPTER_TITLE, tracks=[track], icon=icon)]


def compose_script(
    race: RaceRecord,
    drivers: Sequence[DriverStanding],
    teams: Sequence[TeamStanding],
    weather: Optional[WeatherReport] = None,
    icon: Optional[str] = None,
) -> List[Chapter]:
    """Three chapters: next race, top drivers, top teams."""
    sections = [
        ("Next Race", next_race_text(race, weather), icon),
        ("Top 5 Drivers", drivers_text(drivers), None),
        ("Top 5 Teams", teams_text(teams), None),
    ]
    return [
        Chapter(title=title, tracks=[Track(title=title, text=text, icon=chapter_icon)], icon=chapter_icon)
        for title, text, chapter_icon in sections
    ]


def script_text(chapters: Sequence[Chapter]) -> str:
    """Full readable script, e.g. for display before sending to Yoto."""
    blocks = []
    for i, chapter in enumerate(chapters, start=1):
        body = "\n\n".join(t.text for t in chapter.tracks if t.text)
        blocks.append(f"Chapter {i}: {chapter.title}\n\n{body}" if body else f"Chapter {i}: {chapter.title}")
    return "\n\n".join(blocks)
