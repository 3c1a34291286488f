"""
kubectl subprocess helpers for kube-dump.

This module provides functions to:
1. Enumerate the API resource types of a cluster (`kubectl api-resources`)
2. Fetch every object of one resource type (`kubectl get --all-namespaces`)
   and stream the result into a per-resource log file
"""
import logging
import os
import subprocess
from typing import Iterable, List, Optional

from kubedump.constants import (
    CONTEXT_FLAG,
    FIELDS_WITH_SHORTNAMES,
    FIELDS_WITHOUT_SHORTNAMES,
    GET_ALL_NAMESPACES_ARGS,
    KUBECTL,
    LIST_RESOURCES_ARGS,
    RESOURCE_LOG_SUFFIX,
)
from kubedump.models import CommandOutput, Resource

logger = logging.getLogger(__name__)


class KubectlError(Exception):
    """Raised when the resource enumeration command cannot be run or fails.

    Stops the whole run; individual fetch failures are reported through
    CommandOutput instead.
    """
    def __init__(self, message: str, command: List[str], returncode: Optional[int] = None):
        self.command = command
        self.returncode = returncode
        super().__init__(message)


def _with_context(command: List[str], context: Optional[str]) -> List[str]:
    if context:
        command.extend([CONTEXT_FLAG, context])
    return command


def build_list_command(context: Optional[str] = None, kubectl: str = KUBECTL) -> List[str]:
    """Build the `kubectl api-resources` command line."""
    return _with_context([kubectl, *LIST_RESOURCES_ARGS], context)


def build_get_command(
    resource_name: str,
    context: Optional[str] = None,
    kubectl: str = KUBECTL
) -> List[str]:
    """Build the `kubectl get --all-namespaces <resource>` command line."""
    return _with_context([kubectl, *GET_ALL_NAMESPACES_ARGS, resource_name], context)


def parse_api_resources(lines: Iterable[str]) -> List[Resource]:
    """
    Parse `kubectl api-resources` output into Resource records.

    Lines are split on whitespace:
    - 4 fields:  NAME APIVERSION NAMESPACED KIND
    - 5+ fields: NAME SHORTNAMES APIVERSION NAMESPACED KIND (extra fields ignored)

    Lines with fewer than 4 fields are skipped. NAMESPACED is only true for
    the exact string "true".
    """
    resources = []

    for line in lines:
        fields = line.split()

        if len(fields) == FIELDS_WITHOUT_SHORTNAMES:
            name, api_version, namespaced, kind = fields
            short_names = ""
        elif len(fields) >= FIELDS_WITH_SHORTNAMES:
            name, short_names, api_version, namespaced, kind = fields[:FIELDS_WITH_SHORTNAMES]
        else:
            continue

        resources.append(Resource(
            name=name,
            short_names=short_names,
            api_version=api_version,
            namespaced=namespaced == "true",
            kind=kind,
        ))

    return resources


def list_api_resources(context: Optional[str] = None, kubectl: str = KUBECTL) -> List[Resource]:
    """
    Run `kubectl api-resources` and return the parsed resource types.

    Raises:
        KubectlError: If the command cannot be started or exits non-zero
    """
    command = build_list_command(context, kubectl)
    logger.debug(f"Running command: {' '.join(command)}")

    try:
        result = subprocess.run(command, capture_output=True, text=True, errors='replace')
    except OSError as e:
        raise KubectlError(f"Error starting command {' '.join(command)}: {e}", command) from e

    if result.returncode != 0:
        detail = result.stderr.strip()
        message = f"Error waiting for command {' '.join(command)}: exit status {result.returncode}"
        if detail:
            message += f": {detail}"
        raise KubectlError(message, command, result.returncode)

    resources = parse_api_resources(result.stdout.splitlines())
    logger.info(f"Found {len(resources)} API resource types")
    return resources


def fetch_resource(
    resource: Resource,
    output_dir: str,
    context: Optional[str] = None,
    kubectl: str = KUBECTL
) -> CommandOutput:
    """
    Fetch all objects of one resource type into `<output_dir>/<name>.log`.

    The file holds the command line, then the command's stdout, then its
    stderr. stdout goes straight to the file while stderr is collected by
    communicate(), so neither pipe can fill up and stall the command.

    Failures are never raised; they are described in the returned
    CommandOutput.stderr.
    """
    command = build_get_command(resource.name, context, kubectl)
    command_log = f"Running command: {' '.join(command)}\n"
    output = CommandOutput(resource_name=resource.name, command_log=command_log)
    logger.debug(command_log.rstrip())

    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        output.stderr = f"error creating output directory: {e}"
        return output

    file_path = os.path.join(output_dir, f"{resource.name}{RESOURCE_LOG_SUFFIX}")
    output.output_path = file_path

    try:
        log_f = open(file_path, 'wb')
    except OSError as e:
        output.stderr = f"error creating file {file_path}: {e}"
        return output

    with log_f:
        try:
            log_f.write(command_log.encode('utf-8'))
            log_f.flush()
        except OSError as e:
            output.stderr = f"error writing to file {file_path}: {e}"
            return output

        try:
            proc = subprocess.Popen(command, stdout=log_f, stderr=subprocess.PIPE)
        except OSError as e:
            output.stderr = f"error starting command: {e}"
            return output

        _, stderr_data = proc.communicate()
        output.returncode = proc.returncode

        try:
            # The child advanced the shared file offset
            log_f.seek(0, os.SEEK_END)
            log_f.write(stderr_data)
        except OSError as e:
            output.stderr = f"error copying stderr to file: {e}"
            return output

    if proc.returncode != 0:
        output.stderr = (
            f"error running kubectl get command for resource {resource.name}: "
            f"exit status {proc.returncode}"
        )
        detail = stderr_data.decode('utf-8', errors='replace').strip()
        if detail:
            output.stderr += f": {detail}"
        return output

    print(f"Writing {file_path}")
    return output
