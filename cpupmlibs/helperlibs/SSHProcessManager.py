# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Provide API for managing files on a remote host via SSH. Implement the 'ProcessManagerBase' API,
with the idea of having a unified API for local and remote hosts.

File I/O goes over SFTP, commands (only few are needed) run in a new SSH session.

SECURITY NOTICE: this module and any part of it should only be used for debugging and development
purposes. No security audit had been done. Not for production use.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import os
import stat
import glob
import types
import typing
import getpass
import logging
from pathlib import Path
from typing import IO, cast
import paramiko
from cpupmlibs.helperlibs import Logging, _ProcessManagerBase, ClassHelpers, Trivial
from cpupmlibs.helperlibs.Exceptions import Error, ErrorPermissionDenied, ErrorConnect
from cpupmlibs.helperlibs.Exceptions import ErrorNotFound

if typing.TYPE_CHECKING:
    from typing import Generator
    from cpupmlibs.helperlibs._ProcessManagerBase import LsdirTypedDict

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

# Paramiko is a bit too noisy, lower its log level.
logging.getLogger("paramiko").setLevel(logging.WARNING)

class SSHProcessManager(_ProcessManagerBase.ProcessManagerBase):
    """Manage files on a remote host over SSH."""

    def __init__(self,
                 hostname: str,
                 username: str = "",
                 privkeypath: str | Path | None = None,
                 timeout: int | float | None = None):
        """
        Initialize a class instance and establish SSH connection to a remote host.

        Args:
            hostname: The name of the host to connect to.
            username: Username for authentication. Defaults to the current system user.
            privkeypath: Optional path to the private key for authentication. If not provided, look
                         it up in the SSH configuration files.
            timeout: Timeout for establishing the SSH connection in seconds. Defaults to 60
                     seconds.

        Raises:
            ErrorConnect: If SSH connection cannot be established (e.g., authentication fails).
        """

        super().__init__()

        self.is_remote = True
        self.hostname = hostname
        self.hostmsg = f" on host '{hostname}'"

        self.connection_timeout = float(timeout) if timeout else 60.0
        self.username = username if username else getpass.getuser()
        self.privkeypath = str(privkeypath) if privkeypath else None

        self._sftp: paramiko.SFTPClient | None = None
        # The cached result of 'is_superuser()'.
        self._superuser: bool | None = None

        name = self._cfg_lookup("hostname", hostname)
        if isinstance(name, str) and name:
            connhost = name
            self._vhostname = f"{hostname} ({connhost})"
        else:
            self._vhostname = connhost = hostname

        if not self.privkeypath:
            privkeypath = self._cfg_lookup("identityfile", hostname)
            if isinstance(privkeypath, list):
                privkeypath = privkeypath[0]
            self.privkeypath = cast("str | None", privkeypath)

        if self.privkeypath:
            self._check_privkey(self.privkeypath)

        _LOG.debug("Establishing SSH connection to %s, username '%s', timeout '%s', priv. key '%s'",
                   self._vhostname, self.username, self.connection_timeout, self.privkeypath)

        try:
            self.ssh = paramiko.SSHClient()
            self.ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
            self.ssh.connect(username=self.username, hostname=connhost,
                             key_filename=self.privkeypath, timeout=self.connection_timeout,
                             allow_agent=True, look_for_keys=True)
        except paramiko.AuthenticationException as err:
            msg = Error(str(err)).indent(2)
            raise ErrorConnect(f"SSH authentication failed when connecting to {self._vhostname} as "
                               f"'{self.username}':\n{msg}") from err
        except Exception as err: # pylint: disable=broad-except
            msg = Error(str(err)).indent(2)
            raise ErrorConnect(f"Cannot establish TCP connection to {self._vhostname} with "
                               f"{self.connection_timeout} secs time-out:\n{msg}") from err

    def close(self):
        """Close the SSH connection."""

        _LOG.debug("Closing SSH connection to %s", self._vhostname)
        ClassHelpers.close(self, close_attrs=("_sftp", "ssh",))

        super().close()

    @staticmethod
    def _check_privkey(privkeypath: str):
        """Sanity-check the private SSH key file at 'privkeypath'."""

        try:
            mode = os.stat(privkeypath).st_mode
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"'stat()' failed for private SSH key at '{privkeypath}':\n{msg}") from None

        if not stat.S_ISREG(mode):
            raise Error(f"Private SSH key at '{privkeypath}' is not a regular file")

        if mode & (stat.S_IROTH | stat.S_IWOTH | stat.S_IXOTH):
            raise Error(f"Private SSH key at '{privkeypath}' permissions are too wide: make sure "
                        f"'others' cannot read/write/execute it")

    def _cfg_lookup(self,
                    optname: str,
                    hostname: str,
                    cfgfiles: list[str] | None = None) -> str | list[str] | None:
        """
        Search for an SSH configuration option for a given host in SSH config files.

        Args:
            optname: The name of the SSH configuration option to search for.
            hostname: The hostname for which the configuration option is being queried.
            cfgfiles: A list of SSH configuration file paths to search. Use standard paths by
                      default.

        Returns:
            The value of the SSH configuration option if found, otherwise None.
        """

        if cfgfiles is None:
            cfgfiles = [path for path in ("/etc/ssh/ssh_config", os.path.expanduser("~/.ssh/config"))
                        if os.path.exists(path)]

        for cfgfile in cfgfiles:
            try:
                config = paramiko.SSHConfig.from_path(cfgfile)
            except (OSError, paramiko.ConfigParseError) as err:
                _LOG.debug("Cannot parse SSH config file '%s':\n%s", cfgfile,
                           Error(str(err)).indent(2))
                continue

            cfg = config.lookup(hostname)
            if optname in cfg:
                return cfg[optname]

            if "include" in cfg:
                # The include directive may contain wildcards.
                optval = self._cfg_lookup(optname, hostname,
                                          cfgfiles=sorted(glob.glob(cfg["include"])))
                if optval:
                    return optval

        return None

    def _run_verify(self, cmd: str) -> str:
        """
        Run command 'cmd' in a new SSH session and return its standard output.

        Args:
            cmd: The command to run.

        Returns:
            The standard output of the command.

        Raises:
            Error: If the command fails.
        """

        _LOG.debug("Running the following command%s:\n%s", self.hostmsg, cmd)

        try:
            _, stdout, stderr = self.ssh.exec_command(cmd, timeout=self.connection_timeout)
            output = stdout.read().decode("utf-8")
            errors = stderr.read().decode("utf-8")
            exitcode = stdout.channel.recv_exit_status()
        except Exception as err: # pylint: disable=broad-except
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to run command '{cmd}'{self.hostmsg}:\n{msg}") from err

        if exitcode:
            msg = Error(errors.strip()).indent(2)
            raise Error(f"Command '{cmd}' failed{self.hostmsg} with exit code {exitcode}:\n{msg}")

        return output

    def _get_sftp(self) -> paramiko.SFTPClient:
        """
        Return an SFTP session object, establish the session on the first call.

        Returns:
            An 'SFTPClient' object representing the SFTP session.
        """

        if self._sftp:
            return self._sftp

        try:
            self._sftp = self.ssh.open_sftp()
        except Exception as err: # pylint: disable=broad-except
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to establish SFTP session with {self.hostname}:\n{msg}") from err

        return self._sftp

    def open(self, path: str | Path, mode: str) -> IO:
        """Refer to 'ProcessManagerBase.open()'."""

        def _read_(fobj: IO, size: int | None = None) -> bytes | str:
            """Read data from the SFTP file object, decode it in text mode."""

            # Paramiko SFTP file objects support only binary mode, and the "b" flag is ignored.
            data: bytes = getattr(fobj, "_orig_fread_")(size=size)

            if "b" not in getattr(fobj, "_orig_fmode_"):
                return data.decode("utf-8")
            return data

        def _write_(fobj: IO, data: str | bytes):
            """Write data to the SFTP file object, encode it in text mode."""

            if isinstance(data, str):
                data = data.encode("utf-8")
            return getattr(fobj, "_orig_fwrite_")(data)

        def _get_err_prefix(fobj: IO, method: str) -> str:
            """Return the error message prefix for a failed file operation."""
            return f"Method '{method}()' failed for file '{getattr(fobj, '_orig_fpath_')}'"

        path = str(path)
        sftp = self._get_sftp()

        errmsg = f"Failed to open file '{path}' with mode '{mode}' on {self.hostname} via SFTP:"
        try:
            fobj = sftp.file(path, mode)
        except PermissionError as err:
            msg = Error(str(err)).indent(2)
            raise ErrorPermissionDenied(f"{errmsg}\n{msg}") from None
        except FileNotFoundError as err:
            msg = Error(str(err)).indent(2)
            raise ErrorNotFound(f"{errmsg}\n{msg}") from None
        except Exception as err: # pylint: disable=broad-except
            msg = Error(str(err)).indent(2)
            raise Error(f"{errmsg}\n{msg}") from err

        setattr(fobj, "_orig_fpath_", path)
        setattr(fobj, "_orig_fmode_", mode)

        setattr(fobj, "_orig_fread_", fobj.read)
        setattr(fobj, "read", types.MethodType(_read_, fobj))
        setattr(fobj, "_orig_fwrite_", fobj.write)
        setattr(fobj, "write", types.MethodType(_write_, fobj))

        # Make sure methods of 'fobj' always raise the 'Error' exception.
        wfobj = ClassHelpers.WrapExceptions(fobj, get_err_prefix=_get_err_prefix)
        return cast(IO, wfobj)

    def _stat_mode(self, path: str | Path) -> int | None:
        """Return the mode of path 'path', or 'None' if it does not exist."""

        try:
            return self._get_sftp().stat(str(path)).st_mode
        except FileNotFoundError:
            return None
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to check '{path}'{self.hostmsg}:\n{msg}") from None

    def lsdir(self, path: str | Path) -> Generator[LsdirTypedDict, None, None]:
        """Refer to 'ProcessManagerBase.lsdir()'."""

        path = Path(path)

        try:
            attrs = self._get_sftp().listdir_attr(str(path))
        except FileNotFoundError:
            raise ErrorNotFound(f"Directory '{path}' does not exist{self.hostmsg}") from None
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to get list of files in '{path}'{self.hostmsg}:\n{msg}") from None

        for attr in sorted(attrs, key=lambda attr: attr.filename):
            yield {"name": attr.filename, "path": path / attr.filename,
                   "mode": cast(int, attr.st_mode)}

    def exists(self, path: str | Path) -> bool:
        """Refer to 'ProcessManagerBase.exists()'."""
        return self._stat_mode(path) is not None

    def is_file(self, path: str | Path) -> bool:
        """Refer to 'ProcessManagerBase.is_file()'."""

        mode = self._stat_mode(path)
        return mode is not None and stat.S_ISREG(mode)

    def is_dir(self, path: str | Path) -> bool:
        """Refer to 'ProcessManagerBase.is_dir()'."""

        mode = self._stat_mode(path)
        return mode is not None and stat.S_ISDIR(mode)

    def is_superuser(self) -> bool:
        """Refer to 'ProcessManagerBase.is_superuser()'."""

        if self._superuser is None:
            uid = Trivial.str_to_int(self._run_verify("id -u"), what="user ID")
            self._superuser = uid == 0

        return self._superuser
