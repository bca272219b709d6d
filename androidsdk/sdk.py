# SPDX-License-Identifier: MIT
"""
Detect an installed Android SDK and catalog what is in it.

:class:`SDK` validates a directory and scans it once, in a fixed order:

``tools`` (mandatory) → ``build-tools`` → ``platform-tools`` →
``system-images`` → ``platforms`` → ``add-ons``

Platforms pick up the ABIs and skins of the system images scanned before
them, and add-ons inherit from the platforms scanned before them, so the
order matters.  Only a broken ``tools`` directory is fatal; every other
incomplete package is left out of the catalog and noted in
:attr:`SDK.skipped`.
"""
from __future__ import annotations

###############################################################################
# Standard library
###############################################################################
import functools
import logging
import math
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final, Iterator, List, Mapping, Optional, Protocol, Tuple

from android_sdk_utils._android_sdk_utils import (
    bat_name,
    candidate_sdk_roots,
    exe_name,
    expand_path,
    find_executables,
    read_props,
)

###############################################################################
# Logging
###############################################################################
logger = logging.getLogger(__name__)

DEFAULT_SKIN: Final = "WVGA800"


###############################################################################
# Exceptions
###############################################################################
class InvalidArgument(TypeError):
    """Raised when the SDK directory is not a non-empty string or path."""


class InvalidSDK(RuntimeError):
    """Base class for directories that are not a usable Android SDK."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class InvalidRoot(InvalidSDK):
    """The SDK directory does not exist."""


class MissingToolsDir(InvalidSDK):
    """The SDK directory has no ``tools`` directory."""


class MissingToolsDescriptor(InvalidSDK):
    """``tools/source.properties`` is missing."""


class MissingVersion(InvalidSDK):
    """``tools/source.properties`` has no ``Pkg.Revision``."""


class MissingEmulator(InvalidSDK):
    """The ``tools/emulator`` executable is missing."""


###############################################################################
# Catalog records
###############################################################################
def _frozen_map(data: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True, slots=True)
class ToolsInfo:
    path: Optional[str] = None
    version: Optional[str] = None
    executables: Mapping[str, Optional[str]] = field(default_factory=_frozen_map)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "version": self.version,
            "executables": dict(self.executables),
        }


@dataclass(frozen=True, slots=True)
class BuildTools:
    version: Optional[str]
    path: str
    executables: Mapping[str, Optional[str]]
    dx: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "path": self.path,
            "executables": dict(self.executables),
            "dx": self.dx,
        }


@dataclass(frozen=True, slots=True)
class SystemImage:
    abi: str
    skins: Tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"abi": self.abi, "skins": list(self.skins)}


@dataclass(frozen=True, slots=True)
class Platform:
    """One ``platforms/<name>`` package, e.g. ``android-28``."""

    id: str
    name: str
    api_level: int
    codename: Optional[str]
    revision: Optional[int | float]
    path: str
    version: Optional[str]
    abis: Mapping[str, Tuple[str, ...]]
    skins: Tuple[str, ...]
    default_skin: Optional[str]
    min_tools_rev: Optional[int | float]
    android_jar: Optional[str]
    aidl: Optional[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "apiLevel": self.api_level,
            "codename": self.codename,
            "revision": self.revision,
            "path": self.path,
            "version": self.version,
            "abis": {tag: list(abis) for tag, abis in self.abis.items()},
            "skins": list(self.skins),
            "defaultSkin": self.default_skin,
            "minToolsRev": self.min_tools_rev,
            "androidJar": self.android_jar,
            "aidl": self.aidl,
        }


@dataclass(frozen=True, slots=True)
class Addon:
    """
    One ``add-ons/<name>`` package.

    ``based_on`` holds the id of the GA platform with the same API level, and
    the remaining optional fields are copies of that platform's values (all
    ``None`` when no such platform is installed).
    """

    id: str
    name: str
    api_level: int
    revision: Optional[int | float]
    codename: Optional[str]
    path: str
    based_on: Optional[str] = None
    abis: Optional[Mapping[str, Tuple[str, ...]]] = None
    skins: Optional[Tuple[str, ...]] = None
    default_skin: Optional[str] = None
    min_tools_rev: Optional[int | float] = None
    android_jar: Optional[str] = None
    aidl: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "apiLevel": self.api_level,
            "revision": self.revision,
            "codename": self.codename,
            "path": self.path,
            "basedOn": self.based_on,
            "abis": (
                None
                if self.abis is None
                else {tag: list(abis) for tag, abis in self.abis.items()}
            ),
            "skins": None if self.skins is None else list(self.skins),
            "defaultSkin": self.default_skin,
            "minToolsRev": self.min_tools_rev,
            "androidJar": self.android_jar,
            "aidl": self.aidl,
        }


@dataclass(frozen=True, slots=True)
class Skipped:
    """A package directory that was left out of the catalog, and why."""

    kind: str
    path: str
    reason: str


###############################################################################
# Ordering
###############################################################################
class _Versioned(Protocol):
    api_level: int
    codename: Optional[str]


def compare_versions(a: _Versioned, b: _Versioned) -> int:
    """
    Order by API level; at the same level GA releases (no codename) come
    before previews, and previews are ordered by codename.
    """
    if a.api_level != b.api_level:
        return -1 if a.api_level < b.api_level else 1
    if a.codename is None or b.codename is None:
        return (a.codename is not None) - (b.codename is not None)
    return (a.codename > b.codename) - (a.codename < b.codename)


sort_key = functools.cmp_to_key(compare_versions)


###############################################################################
# Small parsing helpers
###############################################################################
def _api_level(value: Optional[str]) -> int:
    """Truncate a descriptor value to an int; anything unparsable is 0."""
    if not value:
        return 0
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return 0


def _number(value: Optional[str]) -> Optional[int | float]:
    """Parse a revision-like value; zero and garbage become ``None``."""
    if not value:
        return None
    try:
        num = float(value)
    except ValueError:
        return None
    if not math.isfinite(num) or num == 0:
        return None
    return int(num) if num.is_integer() else num


def _list_dir(path: str) -> List[str]:
    # name order keeps insertion order reproducible across file systems
    return sorted(os.listdir(path)) if os.path.isdir(path) else []


def _find_skins(dir_: str) -> List[str]:
    """Names of ``skins/<name>`` directories that carry a ``hardware.ini``."""
    skins_dir = os.path.join(dir_, "skins")
    return [
        name
        for name in _list_dir(skins_dir)
        if os.path.isfile(os.path.join(skins_dir, name, "hardware.ini"))
    ]


def _pick_default_skin(skins: List[str], sdk_props: Optional[dict[str, str]]) -> Optional[str]:
    preferred = sdk_props.get("sdk.skin.default") if sdk_props else None
    if preferred in skins:
        return preferred
    if DEFAULT_SKIN in skins:
        return DEFAULT_SKIN
    return skins[-1] if skins else None


def _file_or_none(path: str) -> Optional[str]:
    return path if os.path.isfile(path) else None


###############################################################################
# Scanners
###############################################################################
def _scan_build_tools(root: str, skipped: List[Skipped]) -> List[BuildTools]:
    found: List[BuildTools] = []
    build_tools_dir = os.path.join(root, "build-tools")
    for name in _list_dir(build_tools_dir):
        dir_ = os.path.join(build_tools_dir, name)
        if not os.path.isdir(dir_):
            continue
        props = read_props(os.path.join(dir_, "source.properties"))
        if props is None:
            skipped.append(Skipped("build-tools", dir_, "missing source.properties"))
            continue
        found.append(
            BuildTools(
                version=props.get("Pkg.Revision") or None,
                path=dir_,
                executables=_frozen_map(
                    find_executables(
                        dir_,
                        {
                            "aapt": exe_name("aapt"),
                            "aapt2": exe_name("aapt2"),
                            "aidl": exe_name("aidl"),
                            "zipalign": exe_name("zipalign"),
                        },
                    )
                ),
                dx=_file_or_none(os.path.join(dir_, "lib", "dx.jar")),
            )
        )
    return found


def _scan_platform_tools(root: str, skipped: List[Skipped]) -> ToolsInfo:
    dir_ = os.path.join(root, "platform-tools")
    if not os.path.isdir(dir_):
        return ToolsInfo()
    props = read_props(os.path.join(dir_, "source.properties"))
    if props is None:
        skipped.append(Skipped("platform-tools", dir_, "missing source.properties"))
        return ToolsInfo()
    return ToolsInfo(
        path=dir_,
        version=props.get("Pkg.Revision") or None,
        executables=_frozen_map(find_executables(dir_, {"adb": exe_name("adb")})),
    )


def _scan_system_images(
    root: str, skipped: List[Skipped]
) -> dict[str, dict[str, List[SystemImage]]]:
    """Walk ``system-images/<platform>/<tag>/<abi>`` into ``{id: {tag: [image]}}``."""
    images: dict[str, dict[str, List[SystemImage]]] = {}
    images_dir = os.path.join(root, "system-images")
    for platform in _list_dir(images_dir):
        platform_dir = os.path.join(images_dir, platform)
        for tag in _list_dir(platform_dir):
            tag_dir = os.path.join(platform_dir, tag)
            for abi in _list_dir(tag_dir):
                abi_dir = os.path.join(tag_dir, abi)
                if not os.path.isdir(abi_dir):
                    continue
                props = read_props(os.path.join(abi_dir, "source.properties"))
                if props is None:
                    skipped.append(Skipped("system-image", abi_dir, "missing source.properties"))
                    continue
                missing = [
                    key
                    for key in ("AndroidVersion.ApiLevel", "SystemImage.TagId", "SystemImage.Abi")
                    if not props.get(key)
                ]
                if missing:
                    skipped.append(Skipped("system-image", abi_dir, f"missing {', '.join(missing)}"))
                    continue

                id_ = f"android-{props.get('AndroidVersion.CodeName') or props['AndroidVersion.ApiLevel']}"
                by_tag = images.setdefault(id_, {})
                by_tag.setdefault(props["SystemImage.TagId"], []).append(
                    SystemImage(abi=props["SystemImage.Abi"], skins=tuple(_find_skins(abi_dir)))
                )
    return images


def _scan_platforms(
    root: str,
    system_images: Mapping[str, Mapping[str, List[SystemImage]]],
    skipped: List[Skipped],
) -> List[Platform]:
    found: List[Platform] = []
    platforms_dir = os.path.join(root, "platforms")
    for name in _list_dir(platforms_dir):
        dir_ = os.path.join(platforms_dir, name)
        props = read_props(os.path.join(dir_, "source.properties"))
        if props is None:
            if os.path.isdir(dir_):
                skipped.append(Skipped("platform", dir_, "missing source.properties"))
            continue
        api_level = _api_level(props.get("AndroidVersion.ApiLevel"))
        if not api_level:
            skipped.append(Skipped("platform", dir_, "missing AndroidVersion.ApiLevel"))
            continue
        if not os.path.isfile(os.path.join(dir_, "build.prop")):
            skipped.append(Skipped("platform", dir_, "missing build.prop"))
            continue

        skins = _find_skins(dir_)
        default_skin = _pick_default_skin(skins, read_props(os.path.join(dir_, "sdk.properties")))

        codename = props.get("AndroidVersion.CodeName") or None
        version = props.get("Platform.Version") or None
        id_ = f"android-{codename or api_level}"

        abis: dict[str, List[str]] = {}
        for tag, tag_images in system_images.get(id_, {}).items():
            tag_abis = abis.setdefault(tag, [])
            for image in tag_images:
                if image.abi not in tag_abis:
                    tag_abis.append(image.abi)
                skins.extend(s for s in image.skins if s not in skins)

        found.append(
            Platform(
                id=id_,
                name=f"Android {version or codename or api_level}{' (Preview)' if codename else ''}",
                api_level=api_level,
                codename=codename,
                revision=_number(props.get("Layoutlib.Revision")),
                path=dir_,
                version=version,
                abis=_frozen_map({tag: tuple(v) for tag, v in abis.items()}),
                skins=tuple(skins),
                default_skin=default_skin,
                min_tools_rev=_number(props.get("Platform.MinToolsRev")),
                android_jar=_file_or_none(os.path.join(dir_, "android.jar")),
                aidl=_file_or_none(os.path.join(dir_, "framework.aidl")),
            )
        )
    return found


def _scan_addons(root: str, platforms: List[Platform], skipped: List[Skipped]) -> List[Addon]:
    found: List[Addon] = []
    addons_dir = os.path.join(root, "add-ons")
    for name in _list_dir(addons_dir):
        dir_ = os.path.join(addons_dir, name)
        props = read_props(os.path.join(dir_, "source.properties"))
        if props is None:
            if os.path.isdir(dir_):
                skipped.append(Skipped("addon", dir_, "missing source.properties"))
            continue
        api_level = _api_level(props.get("AndroidVersion.ApiLevel"))
        vendor = props.get("Addon.VendorDisplay")
        addon_name = props.get("Addon.NameDisplay")
        if not api_level or not vendor or not addon_name:
            skipped.append(
                Skipped("addon", dir_, "missing AndroidVersion.ApiLevel, Addon.VendorDisplay or Addon.NameDisplay")
            )
            continue

        # platforms are still in discovery order here; the first GA match wins
        base = next(
            (p for p in platforms if p.codename is None and p.api_level == api_level),
            None,
        )
        inherited: dict[str, Any] = {}
        if base is not None:
            inherited = dict(
                based_on=base.id,
                abis=_frozen_map(base.abis),
                skins=tuple(base.skins),
                default_skin=base.default_skin,
                min_tools_rev=base.min_tools_rev,
                android_jar=base.android_jar,
                aidl=base.aidl,
            )

        found.append(
            Addon(
                id=f"{vendor}:{addon_name}:{api_level}",
                name=addon_name,
                api_level=api_level,
                revision=_number(props.get("Pkg.Revision")),
                codename=props.get("AndroidVersion.CodeName") or None,
                path=dir_,
                **inherited,
            )
        )
    return found


###############################################################################
# SDK
###############################################################################
class SDK:
    """
    A validated Android SDK installation and the packages found in it.

    Raises :class:`InvalidArgument` for a bad argument and a subclass of
    :class:`InvalidSDK` when the directory is not a usable SDK.  The object
    is read-only once constructed.
    """

    __slots__ = (
        "path",
        "tools",
        "platform_tools",
        "build_tools",
        "platforms",
        "addons",
        "system_images",
        "skipped",
        "_frozen",
    )

    def __init__(self, dir_: str | os.PathLike[str]) -> None:
        if not isinstance(dir_, (str, os.PathLike)) or not os.fspath(dir_):
            raise InvalidArgument("Expected directory to be a non-empty string or path")

        root = expand_path(dir_)
        if not os.path.isdir(root):
            raise InvalidRoot(f"Directory does not exist: {root}", root)

        tools_dir = os.path.join(root, "tools")
        if not os.path.isdir(tools_dir):
            raise MissingToolsDir(f'Directory does not contain a "tools" directory: {root}', tools_dir)

        tools_props = read_props(os.path.join(tools_dir, "source.properties"))
        if tools_props is None:
            raise MissingToolsDescriptor(
                f'Directory contains bad "tools/source.properties" file: {root}', tools_dir
            )
        version = tools_props.get("Pkg.Revision")
        if not version:
            raise MissingVersion(
                f'Directory contains invalid "tools/source.properties" (missing Pkg.Revision): {root}',
                tools_dir,
            )

        executables = find_executables(
            tools_dir,
            {
                "android": bat_name("android"),
                "emulator": exe_name("emulator"),
                "sdkmanager": os.path.join("bin", bat_name("sdkmanager")),
            },
        )
        if executables["emulator"] is None:
            raise MissingEmulator(f'Directory missing "tools/emulator" executable: {root}', tools_dir)

        skipped: List[Skipped] = []
        build_tools = _scan_build_tools(root, skipped)
        platform_tools = _scan_platform_tools(root, skipped)
        system_images = _scan_system_images(root, skipped)
        platforms = _scan_platforms(root, system_images, skipped)
        addons = _scan_addons(root, platforms, skipped)

        platforms.sort(key=sort_key)
        addons.sort(key=sort_key)

        for entry in skipped:
            logger.debug("Skipped %s %s: %s", entry.kind, entry.path, entry.reason)

        self.path = root
        self.tools = ToolsInfo(path=tools_dir, version=version, executables=_frozen_map(executables))
        self.platform_tools = platform_tools
        self.build_tools = tuple(build_tools)
        self.platforms = tuple(platforms)
        self.addons = tuple(addons)
        self.system_images = _frozen_map(
            {
                id_: _frozen_map({tag: tuple(imgs) for tag, imgs in by_tag.items()})
                for id_, by_tag in system_images.items()
            }
        )
        self.skipped = tuple(skipped)
        self._frozen = True

        logger.debug(
            "Android SDK %s: %d build-tools, %d platforms, %d add-ons, %d system image platforms",
            root,
            len(self.build_tools),
            len(self.platforms),
            len(self.addons),
            len(self.system_images),
        )

    # ---------------------------------------------------------------- read-only
    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError(f"SDK is read-only; cannot set {name!r}")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"SDK is read-only; cannot delete {name!r}")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<SDK {self.path!r}>"

    # ---------------------------------------------------------------- lookups
    def get_platform(self, id_or_api_level: str | int) -> Platform | None:
        """Return the platform with the given id (``"android-28"``) or GA API level."""
        if isinstance(id_or_api_level, int):
            return next(
                (p for p in self.platforms if p.api_level == id_or_api_level and p.codename is None),
                None,
            )
        return next((p for p in self.platforms if p.id == id_or_api_level), None)

    def get_build_tools(self, version: str) -> BuildTools | None:
        return next((b for b in self.build_tools if b.version == version), None)

    # ---------------------------------------------------------------- export
    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible view of the catalog."""
        return {
            "path": self.path,
            "tools": self.tools.to_dict(),
            "platformTools": self.platform_tools.to_dict(),
            "buildTools": [b.to_dict() for b in self.build_tools],
            "platforms": [p.to_dict() for p in self.platforms],
            "addons": [a.to_dict() for a in self.addons],
            "systemImages": {
                id_: {tag: [img.to_dict() for img in imgs] for tag, imgs in by_tag.items()}
                for id_, by_tag in self.system_images.items()
            },
        }


###############################################################################
# Discovery
###############################################################################
def find_sdks() -> Iterator[SDK]:
    """
    Yield every valid SDK among the candidate locations, highest priority
    first.  Directories that are not an SDK are skipped.
    """
    seen: set[str] = set()
    for root in candidate_sdk_roots():
        try:
            sdk = SDK(root)
        except InvalidSDK as exc:
            logger.debug("Not an Android SDK: %s (%s)", root, exc)
            continue
        if sdk.path in seen:
            continue
        seen.add(sdk.path)
        yield sdk
