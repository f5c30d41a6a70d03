"""Read-only virtual filesystem presented to FTP clients.

The tree is generated once at startup and shared by every session. Nodes are
frozen and directories hold their children in a tuple, so nothing can change
the tree after ``build_file_system`` returns and sessions can read it without
locking.
"""
import posixpath
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from name_generator import (
    category_for,
    generate_file_name,
    generate_video_file_name,
    random_file_size,
)


@dataclass(frozen=True)
class FSNode:
    name: str
    is_dir: bool
    children: Tuple["FSNode", ...] = ()
    size: int = 0

    def find_child(self, name: str) -> Optional["FSNode"]:
        for child in self.children:
            if child.name == name:
                return child
        return None


# Directory skeleton; sub-directories precede generated files in listings.
_LAYOUT: Dict[str, dict] = {
    "documents": {
        "passwords": {},
        "backups": {},
        "records": {"bank": {}, "bitcoin": {}},
        "harmony": {},
        "echo": {},
        "legacy": {},
    },
    "pictures": {"videos": {}, "wedding_2023": {}, "secret": {}},
    "downloads": {"Usenet": {}, "Torrents": {}},
    "applications": {"games": {}},
}

MIN_FILES_PER_DIR = 10
MAX_FILES_PER_DIR = 30


def clean_path(path: str) -> str:
    """Lexically clean an absolute path: collapse slashes, drop ``.``, apply ``..``."""
    cleaned = posixpath.normpath("/" + path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def join_path(cwd: str, arg: str) -> str:
    if arg.startswith("/"):
        return clean_path(arg)
    return clean_path(cwd + "/" + arg)


def resolve(root: FSNode, path: str) -> Optional[FSNode]:
    if path == "/" or path == "":
        return root
    node = root
    for part in clean_path(path).split("/"):
        if part == "":
            continue
        node = node.find_child(part)
        if node is None:
            return None
    return node


def format_listing_line(node: FSNode) -> str:
    if node.is_dir:
        return f"drwxr-xr-x 1 ftp ftp {0:12d} Jan 01 00:00 {node.name}\r\n"
    return f"-rw-r--r-- 1 ftp ftp {node.size:12d} Jan 01 00:00 {node.name}\r\n"


def _make_file_name(dir_name: str, path: str, rng: random.Random) -> str:
    if dir_name.lower() == "videos":
        return generate_video_file_name(rng)
    if dir_name.lower() == "games":
        return generate_file_name("games", rng)
    return generate_file_name(category_for(path), rng)


def _generate_files(dir_name: str, path: str, taken: set, rng: random.Random) -> List[FSNode]:
    files = []
    for _ in range(rng.randint(MIN_FILES_PER_DIR, MAX_FILES_PER_DIR)):
        name = _make_file_name(dir_name, path, rng)
        while not name or name in taken:
            name = _make_file_name(dir_name, path, rng)
        taken.add(name)
        files.append(FSNode(name=name, is_dir=False, size=random_file_size(rng)))
    return files


def _build_dir(name: str, layout: Dict[str, dict], path: str, rng: random.Random) -> FSNode:
    subdirs = [
        _build_dir(child, sub_layout, posixpath.join(path, child), rng)
        for child, sub_layout in layout.items()
    ]
    taken = {d.name for d in subdirs}
    files = _generate_files(name, path, taken, rng)
    return FSNode(name=name, is_dir=True, children=tuple(subdirs + files))


def build_file_system(rng: Optional[random.Random] = None) -> FSNode:
    """Generate the whole tree and return its root, named ``/``."""
    return _build_dir("/", _LAYOUT, "/", rng or random.Random())
