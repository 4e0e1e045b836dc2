"""
Pytest configuration and fixtures for apt_pending tests.
"""

import os
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from apt_pending.calculator import PendingCalculator
from apt_pending.config import PluginConfig

UPDATE_URIS_OUTPUT = """\
'http://deb.debian.org/debian/dists/bookworm/InRelease' deb.debian.org_debian_dists_bookworm_InRelease 0
'http://deb.debian.org/debian/dists/bookworm-updates/InRelease' deb.debian.org_debian_dists_bookworm-updates_InRelease 0
'http://security.debian.org/debian-security/dists/bookworm-security/InRelease' security.debian.org_debian-security_dists_bookworm-security_InRelease 0
'http://deb.debian.org/debian/dists/bookworm/main/binary-amd64/Packages.xz' deb.debian.org_debian_dists_bookworm_main_binary-amd64_Packages 0
"""

DIST_UPGRADE_OUTPUT = """\
Reading package lists...
Building dependency tree...
Reading state information...
Calculating upgrade...
The following packages will be REMOVED:
  oldlib1
The following NEW packages will be installed:
  linux-image-6.1.0-18-amd64
The following packages have been kept back:
  held-a held-b
The following packages will be upgraded:
  bash libc6
  openssl
3 upgraded, 1 newly installed, 1 to remove and 2 not upgraded.
Need to get 12.3 MB of archives.
After this operation, 1024 kB of additional disk space will be used.
'http://deb.debian.org/debian/pool/main/b/bash/bash_5.2.15-2+b7_amd64.deb' bash_5.2.15-2+b7_amd64.deb 1491880 MD5Sum:0123
"""

NOTHING_TO_DO_OUTPUT = """\
Reading package lists...
Building dependency tree...
Calculating upgrade...
0 upgraded, 0 newly installed, 0 to remove and 0 not upgraded.
"""

OLD_MTIME = 1_000_000_000


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def apt_tree(temp_dir):
    """Create a fake apt cache directory and dpkg status file with old mtimes."""
    cache_dir = temp_dir / "cache" / "apt"
    cache_dir.mkdir(parents=True)
    for name in ("pkgcache.bin", "srcpkgcache.bin"):
        (cache_dir / name).write_bytes(b"\0")
        os.utime(cache_dir / name, (OLD_MTIME, OLD_MTIME))

    dpkg_status = temp_dir / "dpkg" / "status"
    dpkg_status.parent.mkdir()
    dpkg_status.write_text("Package: bash\nStatus: install ok installed\n")
    os.utime(dpkg_status, (OLD_MTIME, OLD_MTIME))

    state_dir = temp_dir / "plugstate"
    state_dir.mkdir()

    return {
        "cache_dir": cache_dir,
        "dpkg_status": dpkg_status,
        "state_dir": state_dir,
    }


@pytest.fixture
def make_config(apt_tree):
    """Build a PluginConfig pointing at the fake apt tree."""

    def _make(**overrides):
        values = dict(apt_tree)
        values.update(overrides)
        return PluginConfig(**values)

    return _make


@pytest.fixture
def fake_apt(monkeypatch):
    """
    Replace apt-get invocations with canned output.

    Outputs are keyed by "update" for release detection and by release
    name for dist-upgrade simulations. Calls are recorded in order.
    """
    outputs = {"update": UPDATE_URIS_OUTPUT}
    calls = []

    def _run(self, args):
        calls.append(list(args))
        key = "update" if args[0] == "update" else args[args.index("-t") + 1]
        text = outputs.get(key, NOTHING_TO_DO_OUTPUT)
        return text.splitlines(keepends=True), 0

    monkeypatch.setattr(PendingCalculator, "_run", _run)
    return {"outputs": outputs, "calls": calls}


@pytest.fixture
def update_uris_output():
    """Provide `apt-get update --print-uris` output."""
    return UPDATE_URIS_OUTPUT.splitlines(keepends=True)


@pytest.fixture
def dist_upgrade_output():
    """Provide dist-upgrade simulation output with every section."""
    return DIST_UPGRADE_OUTPUT.splitlines(keepends=True)


@pytest.fixture
def nothing_to_do_output():
    """Provide dist-upgrade simulation output with nothing pending."""
    return NOTHING_TO_DO_OUTPUT.splitlines(keepends=True)
