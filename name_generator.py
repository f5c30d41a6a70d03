import random
import re
from typing import List, Optional

CATEGORIES = ("documents", "pictures", "downloads", "applications")

_ADJECTIVES = [
    "quick", "happy", "bright", "silent", "mellow",
    "brisk", "calm", "clever", "daring", "elegant",
    "fancy", "gentle", "jolly", "lively", "polite",
    "quiet", "rapid", "shiny", "smiling", "witty",
]

_NOUNS = {
    "pictures": [
        "sunset", "mountain", "beach", "forest", "cityscape",
        "portrait", "landscape", "snapshot", "selfie", "reflection",
        "vista", "waterfall", "garden", "skyline", "horizon",
    ],
    "documents": [
        "report", "proposal", "memo", "summary", "draft",
        "invoice", "agenda", "minutes", "letter", "notes",
        "analysis", "blueprint", "plan", "overview", "abstract",
        "manual", "document", "research", "file", "paper",
    ],
    "downloads": [
        "installer", "update", "package", "archive", "setup",
        "bundle", "release", "version", "patch", "module",
        "download", "resource", "addon", "toolkit", "driver",
        "script", "library", "binary", "compiler", "framework",
    ],
    "applications": [
        "calculator", "editor", "notepad", "browser", "player",
        "manager", "tracker", "organizer", "viewer", "mailer",
        "converter", "explorer", "designer", "scheduler", "recorder",
        "terminal", "dashboard", "monitor", "assistant", "studio",
    ],
    "games": [
        "adventure", "quest", "battle", "arena", "saga",
        "challenge", "odyssey", "mission", "struggle", "duel",
        "clash", "legend", "racer", "fighter", "hero",
        "escape", "survival", "chronicle", "empire", "fantasy",
    ],
}

_EXTENSIONS = {
    "pictures": [".jpg", ".png", ".gif", ".bmp"],
    "documents": [".doc", ".pdf", ".txt", ".rtf", ".odt"],
    "downloads": [".zip", ".rar", ".exe", ".msi", ".tar.gz"],
    "applications": [".app", ".exe", ".bin"],
    "games": [".game", ".bin", ".rom", ".iso", ""],
}

_VIDEO_EXTENSIONS = [".mp4", ".avi", ".mkv", ".flv", ".wmv"]

# Word pools for home-video style titles.
_OCCASIONS = [
    "Birthday", "Graduation", "Holiday", "Reunion", "Anniversary",
    "Roadtrip", "Camping", "Christmas", "NewYears", "Housewarming",
]
_PLACES = [
    "Lake", "Beach", "Cabin", "Backyard", "Mountains",
    "Grandmas House", "Downtown", "Stadium", "Park", "Airport",
]
_PEOPLE = [
    "Mike", "John", "Candy", "Steve", "Roxy",
    "Dave", "Ruby", "Luke", "Daisy", "Ryan",
    "Lola", "Chris", "Penny", "Sam", "Bella",
]
_TAGS = ["raw", "final", "edited", "HD", "uncut", "backup", "old", "copy"]

_FILE_SIZES = [
    69,
    6969,
    69696969,
    420,
    420420,
    420420420420,
    42069,
    69420,
    6942069,
]

_INVALID_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_HYPHEN_RUNS = re.compile(r"-+")


def slugify(title: str) -> str:
    """Lowercase ``title``, drop punctuation and join words with single hyphens."""
    slug = _INVALID_SLUG_CHARS.sub("", title.lower())
    slug = slug.replace(" ", "-")
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug.strip("-")


def category_for(path: str) -> str:
    parts = [p for p in path.split("/") if p]
    if parts and parts[0] in CATEGORIES:
        return parts[0]
    return "documents"


def generate_file_name(category: str, rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    nouns = _NOUNS.get(category, _NOUNS["documents"])
    exts = _EXTENSIONS.get(category, _EXTENSIONS["documents"])
    suffix = rng.randint(10, 99)
    return f"{rng.choice(_ADJECTIVES)}_{rng.choice(nouns)}_{suffix}{rng.choice(exts)}"


def generate_video_title(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    person = rng.choice(_PEOPLE)
    options: List[str] = [
        f"{rng.choice(_OCCASIONS)} at the {rng.choice(_PLACES)}",
        f"{person}'s {rng.choice(_OCCASIONS)}",
        f"{rng.choice(_OCCASIONS)} {rng.randint(2009, 2024)} {rng.choice(_TAGS)}",
        f"{person} and {rng.choice(_PEOPLE)} - {rng.choice(_PLACES)}",
        f"{rng.choice(_PLACES)} {rng.choice(_OCCASIONS)} part {rng.randint(1, 9)}",
    ]
    title = rng.choice(options)
    roll = rng.randint(0, 99)
    if roll < 10:
        title = "copy of " + title
    elif roll >= 90:
        title = title + " " + rng.choice(_TAGS)
    return title


def generate_video_file_name(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return slugify(generate_video_title(rng)) + rng.choice(_VIDEO_EXTENSIONS)


def random_file_size(rng: Optional[random.Random] = None) -> int:
    rng = rng or random
    return rng.choice(_FILE_SIZES)
