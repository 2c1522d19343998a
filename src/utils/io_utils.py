# utils/io_utils.py
import os, yaml


def _src_dir() -> str:
    # parent of utils/ (i.e., .../src)
    return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def load_config(path: str = None) -> dict:
    """
    Load config.yaml configuration.
    If no path provided, defaults to the config.yaml file next to pipeline.py.
    """
    if path is None:
        path = os.path.join(_src_dir(), "config.yaml")

    if not os.path.exists(path):
        raise FileNotFoundError(f"config.yaml not found at: {path}")
    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    # relative data/output paths are resolved against the config file location
    base_dir = os.path.dirname(os.path.abspath(path))
    for section, key in (("data", "sales"), ("data", "weather"), ("report", "out_dir")):
        value = (cfg.get(section) or {}).get(key)
        if value and not os.path.isabs(value):
            cfg[section][key] = os.path.normpath(os.path.join(base_dir, value))
    return cfg


def resolve_path(path_ref: str, base_dir: str = None) -> str:
    base_dir = base_dir or _src_dir()
    if os.path.isabs(path_ref) and os.path.exists(path_ref):
        return path_ref
    if os.path.exists(path_ref):
        return os.path.abspath(path_ref)
    cand = os.path.abspath(os.path.join(base_dir, path_ref))
    if os.path.exists(cand):
        return cand
    raise FileNotFoundError(f"Data file not found: {path_ref}")
