from pathlib import Path

from content_gallery.core.system import get_xdg_config_home


CONFIG_FILE_NAMES = (".content_gallery.toml", "content_gallery.toml")


def find_toml_config_file() -> Path | None:
    """Find the TOML configuration file for content_gallery.

    Searches in the following order:
    1. .content_gallery.toml in current directory
    2. content_gallery.toml in current directory
    3. config.toml in user config directory/content_gallery/ (platform-specific)
    """
    candidates = [Path(name).resolve() for name in CONFIG_FILE_NAMES]
    candidates.append(get_content_gallery_config_dir() / "config.toml")

    for candidate in candidates:
        if candidate.exists() and candidate.is_file():
            return candidate

    return None


def get_content_gallery_config_dir() -> Path:
    """Get the content_gallery configuration directory.

    Returns:
        Path to the configuration directory within user config directory.
    """
    return get_xdg_config_home() / "content_gallery"
