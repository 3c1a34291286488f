"""
Shared fixtures for kube-dump tests.

The fake kubectl is a small Python script that mimics the two commands
kube-dump runs:
- `api-resources`: prints a canned listing
- `get --all-namespaces <name>`: prints a table, or fails for names listed
  in `failing`
"""
import logging
import os
import stat
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


SAMPLE_LISTING = """\
bindings                                       v1                      true         Binding
componentstatuses   cs                         v1                      false        ComponentStatus
configmaps          cm                         v1                      true         ConfigMap
pods                po                         v1                      true         Pod
clusterroles                                   rbac.authorization.k8s.io/v1   false   ClusterRole
"""

FAKE_KUBECTL_TEMPLATE = """\
#!{python}
import sys

LISTING = {listing!r}
FAILING = {failing!r}
LIST_EXIT = {list_exit!r}
STDOUT_SIZE = {stdout_size!r}
STDERR_SIZE = {stderr_size!r}

args = sys.argv[1:]
if args[0] == "api-resources":
    if isinstance(LISTING, bytes):
        sys.stdout.buffer.write(LISTING)
    else:
        sys.stdout.write(LISTING)
    if LIST_EXIT:
        sys.stderr.write("error: You must be logged in to the server (Unauthorized)\\n")
    sys.exit(LIST_EXIT)

if args[0] == "get":
    name = args[2]
    context = args[args.index("--context") + 1] if "--context" in args else "default"
    if name in FAILING:
        sys.stderr.write('error: the server doesn\\'t have a resource type "%s"\\n' % name)
        sys.exit(1)
    if STDERR_SIZE:
        sys.stderr.write("w" * STDERR_SIZE)
        sys.stderr.flush()
    sys.stdout.write("NAMESPACE   NAME\\n%s   %s-1\\n" % (context, name))
    if STDOUT_SIZE:
        sys.stdout.write("o" * STDOUT_SIZE)
    sys.exit(0)

sys.exit(2)
"""


@pytest.fixture
def make_kubectl(tmp_path):
    """Factory writing an executable fake kubectl and returning its path."""
    def _make(listing=SAMPLE_LISTING, failing=(), list_exit=0, stdout_size=0, stderr_size=0):
        path = tmp_path / "bin" / "kubectl"
        path.parent.mkdir(exist_ok=True)
        path.write_text(FAKE_KUBECTL_TEMPLATE.format(
            python=sys.executable,
            listing=listing,
            failing=list(failing),
            list_exit=list_exit,
            stdout_size=stdout_size,
            stderr_size=stderr_size,
        ))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _make


@pytest.fixture
def output_dir(tmp_path):
    """Output directory path (not created)."""
    return str(tmp_path / "resources")


@pytest.fixture(autouse=True)
def restore_logging():
    """Drop handlers added by setup_logging() so they never outlive a test's captured streams."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        # pytest's own capture handlers are subclasses and are left alone
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
