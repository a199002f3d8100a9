#!/usr/bin/env python3
"""
Ubuntu Web Application Server Setup

Walks an operator through provisioning a single Ubuntu server:
  • PostgreSQL installation
  • Apache2 + PHP + Composer installation
  • Complete Yii2 site (virtual host, web directory, bare Git repository
    with a post-receive deploy hook)
  • Complete Vue.js site (virtual host with SPA fallback, web directory)

Note: Run this script as a regular user with sudo privileges, not as root.
"""

import atexit
import datetime
import getpass
import hashlib
import html
import logging
import os
import re
import shlex
import shutil
import signal
import socket
import subprocess
import sys
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple, Union

try:
    import click
    import pyfiglet
    import requests
    from rich import box
    from rich.align import Align
    from rich.console import Console
    from rich.logging import RichHandler
    from rich.markup import escape
    from rich.panel import Panel
    from rich.progress import (
        Progress,
        SpinnerColumn,
        TextColumn,
        TimeElapsedColumn,
    )
    from rich.prompt import Confirm, Prompt
    from rich.table import Table
    from rich.text import Text
    from rich.theme import Theme
    from rich.traceback import install as install_rich_traceback
except ImportError:
    print(
        "Required libraries not found. Please install them using:\n"
        "pip install click rich pyfiglet requests"
    )
    sys.exit(1)


# ----------------------------------------------------------------
# Configuration & Constants
# ----------------------------------------------------------------
APP_NAME: str = "Server Setup"
VERSION: str = "2.0.0"
LOGGER_NAME: str = "app_server_setup"
OPERATION_TIMEOUT: int = 300  # seconds per external command

RESERVED_SITE_NAMES: Tuple[str, ...] = (
    "localhost",
    "www",
    "mail",
    "ftp",
    "admin",
    "root",
    "test",
)
SITE_NAME_PATTERN = re.compile(r"[a-zA-Z0-9.-]+")
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
SITE_NAME_MIN_LENGTH: int = 3
SITE_NAME_MAX_LENGTH: int = 63

POSTGRES_PACKAGES: List[str] = ["postgresql", "postgresql-contrib"]
PHP_PACKAGES: List[str] = [
    "apache2",
    "php",
    "libapache2-mod-php",
    "php-pgsql",
    "php-mysql",
    "php-xml",
    "php-mbstring",
    "php-curl",
    "php-gd",
    "php-zip",
    "php-intl",
    "php-bcmath",
    "unzip",
    "curl",
    "git",
]
REQUIRED_APACHE_MODULES: List[str] = ["rewrite", "headers"]
OPTIONAL_APACHE_MODULES: List[str] = ["ssl", "deflate", "expires"]

COMPOSER_INSTALLER_URL: str = "https://getcomposer.org/installer"
COMPOSER_SIGNATURE_URL: str = "https://composer.github.io/installer.sig"
COMPOSER_INSTALL_DIR: str = "/usr/local/bin"
DOWNLOAD_TIMEOUT: int = 60

PHASES: Tuple[str, ...] = (
    "requirements",
    "postgresql",
    "apache_php",
    "web_directory",
    "git_repository",
    "virtual_host",
    "hostname",
)


# ----------------------------------------------------------------
# Nord-Themed Colors and Theme Setup
# ----------------------------------------------------------------
class NordColors:
    """Nord color palette definitions for consistent UI styling."""

    POLAR_NIGHT_4: str = "#4C566A"
    SNOW_STORM_1: str = "#D8DEE9"
    SNOW_STORM_2: str = "#E5E9F0"
    FROST_1: str = "#8FBCBB"
    FROST_2: str = "#88C0D0"
    FROST_3: str = "#81A1C1"
    FROST_4: str = "#5E81AC"
    RED: str = "#BF616A"
    YELLOW: str = "#EBCB8B"
    GREEN: str = "#A3BE8C"
    PURPLE: str = "#B48EAD"

    @classmethod
    def get_frost_gradient(cls, steps: int = 4) -> List[str]:
        """Returns a gradient using the frost color palette."""
        frosts = [cls.FROST_1, cls.FROST_2, cls.FROST_3, cls.FROST_4]
        return frosts[:steps]


nord_theme = Theme(
    {
        "banner": f"bold {NordColors.FROST_2}",
        "header": f"bold {NordColors.FROST_2}",
        "info": NordColors.GREEN,
        "warning": NordColors.YELLOW,
        "error": NordColors.RED,
        "debug": NordColors.POLAR_NIGHT_4,
        "success": NordColors.GREEN,
        "command": NordColors.FROST_1,
    }
)

console = Console(theme=nord_theme)


# ----------------------------------------------------------------
# Errors
# ----------------------------------------------------------------
class SetupError(Exception):
    """A provisioning step could not be completed."""


class SetupCancelled(SetupError):
    """The operator declined to continue."""


class CommandError(SetupError):
    """A required external command exited with a non-zero status."""

    def __init__(self, cmd: str, returncode: int, output: str = "") -> None:
        super().__init__(f"Command failed with exit code {returncode}: {cmd}")
        self.cmd = cmd
        self.returncode = returncode
        self.output = output


# ----------------------------------------------------------------
# Data Structures
# ----------------------------------------------------------------
class AppType(Enum):
    """Menu entries offered by the setup script."""

    POSTGRESQL = "1"
    APACHE_PHP = "2"
    YII2 = "3"
    VUE = "4"
    EXIT = "5"

    @property
    def label(self) -> str:
        return APP_TYPE_LABELS[self]


APP_TYPE_LABELS: Dict[AppType, str] = {
    AppType.POSTGRESQL: "PostgreSQL installation only",
    AppType.APACHE_PHP: "Apache2 + PHP + Composer installation only",
    AppType.YII2: "Complete Yii2 application setup",
    AppType.VUE: "Complete Vue.js application setup",
    AppType.EXIT: "Exit",
}


def _timestamp() -> str:
    return datetime.datetime.now().strftime("%Y%m%d_%H%M%S")


@dataclass
class Config:
    """Paths and thresholds used while provisioning the server."""

    log_file: str = ""
    backup_dir: str = ""
    www_root: str = "/var/www"
    repo_root: str = "/var/repo"
    sites_available: str = "/etc/apache2/sites-available"
    hosts_file: str = "/etc/hosts"
    deploy_log_dir: str = "/var/log"
    web_group: str = "www-data"
    timeout: int = OPERATION_TIMEOUT
    min_free_bytes: int = 1024**3
    connectivity_host: str = "google.com"

    def __post_init__(self) -> None:
        # Log file and backup directory share one run timestamp
        stamp = _timestamp()
        if not self.log_file:
            self.log_file = f"/tmp/server_setup_{stamp}.log"
        if not self.backup_dir:
            self.backup_dir = f"/tmp/server_setup_backup_{stamp}"

    def web_dir(self, site_name: str) -> str:
        return str(Path(self.www_root) / site_name)

    def repo_dir(self, site_name: str) -> str:
        return str(Path(self.repo_root) / f"{site_name}.git")

    def vhost_file(self, site_name: str) -> str:
        return str(Path(self.sites_available) / f"{site_name}.conf")

    def enabled_link(self, site_name: str) -> str:
        """The a2ensite symlink, in ``sites-enabled`` next to ``sites-available``."""
        return str(Path(self.sites_available).parent / "sites-enabled" / f"{site_name}.conf")

    def deploy_log(self, site_name: str) -> str:
        return str(Path(self.deploy_log_dir) / f"{site_name}-deploy.log")


@dataclass
class SiteConfig:
    """Answers collected for a Yii2 or Vue.js site."""

    name: str
    admin_email: str
    app_type: AppType
    configure_hostname: bool = True

    def document_root(self, config: Config) -> str:
        """Yii2 serves from the ``web`` subdirectory, Vue.js from the site root."""
        root = config.web_dir(self.name)
        if self.app_type is AppType.YII2:
            return f"{root}/web"
        return root


def new_status() -> Dict[str, Dict[str, str]]:
    return {phase: {"status": "pending", "message": ""} for phase in PHASES}


# ----------------------------------------------------------------
# UI Helper Functions
# ----------------------------------------------------------------
def create_header(title: str = APP_NAME) -> Panel:
    """
    Generate an ASCII art header with gradient styling using Pyfiglet.
    Falls back through smaller fonts until one renders for the terminal width.
    """
    term_width, _ = shutil.get_terminal_size((80, 24))
    fonts: List[str] = ["slant", "small", "mini", "digital"]
    if term_width < 60:
        fonts = fonts[1:]

    ascii_art = ""
    for font in fonts:
        try:
            fig = pyfiglet.Figlet(font=font, width=min(term_width - 10, 120))
            ascii_art = fig.renderText(title)
            if ascii_art.strip():
                break
        except pyfiglet.FigletError:
            continue
    if not ascii_art.strip():
        ascii_art = f"  {title}  "

    ascii_lines = [line for line in ascii_art.splitlines() if line.strip()]
    colors = NordColors.get_frost_gradient(len(ascii_lines))
    combined_text = Text()
    for i, line in enumerate(ascii_lines):
        color = colors[i % len(colors)]
        combined_text.append(Text(line, style=f"bold {color}"))
        if i < len(ascii_lines) - 1:
            combined_text.append("\n")

    return Panel(
        Align.center(combined_text),
        border_style=NordColors.FROST_1,
        padding=(1, 2),
        title=Text(f"{APP_NAME} v{VERSION}", style=f"bold {NordColors.SNOW_STORM_2}"),
        title_align="right",
        subtitle=Text(
            "PostgreSQL / Apache2 / Yii2 / Vue.js",
            style=f"bold {NordColors.SNOW_STORM_1}",
        ),
        subtitle_align="center",
        box=box.ROUNDED,
    )


def print_message(
    text: str, style: str = NordColors.FROST_2, prefix: str = "•"
) -> None:
    """Print a styled message with a prefix."""
    console.print(f"[{style}]{prefix} {escape(text)}[/{style}]")


def print_success(message: str) -> None:
    print_message(message, NordColors.GREEN, "✓")
    logging.getLogger(LOGGER_NAME).info(f"SUCCESS: {message}")


def print_warning(message: str) -> None:
    print_message(message, NordColors.YELLOW, "⚠")
    logging.getLogger(LOGGER_NAME).warning(f"WARNING: {message}")


def print_error(message: str) -> None:
    print_message(message, NordColors.RED, "✗")
    logging.getLogger(LOGGER_NAME).error(f"ERROR: {message}")


def print_step(message: str) -> None:
    print_message(message, NordColors.PURPLE, "→")
    logging.getLogger(LOGGER_NAME).info(f"STEP: {message}")


def print_info(message: str) -> None:
    print_message(message, NordColors.FROST_3, "ℹ")


def print_section(title: str) -> None:
    """Print a section header."""
    console.print()
    console.print(f"[bold {NordColors.FROST_3}]{title}[/]")
    console.print(f"[{NordColors.FROST_3}]{'─' * len(title)}[/]")


def display_panel(
    message: str, style: str = NordColors.FROST_2, title: Optional[str] = None
) -> None:
    """Display a styled panel; ``message`` may contain Rich markup."""
    panel = Panel(
        Text.from_markup(message),
        border_style=style,
        padding=(1, 2),
        title=f"[bold {style}]{title}[/]" if title else None,
        box=box.ROUNDED,
    )
    console.print(panel)


def print_status_report(status: Dict[str, Dict[str, str]]) -> None:
    """Print a status report table for all setup phases."""
    table = Table(title="Setup Status Report", style="banner", box=box.ROUNDED)
    table.add_column("Task", style="header")
    table.add_column("Status", style="info")
    table.add_column("Message", style="info")

    for key, data in status.items():
        status_color = {
            "pending": "debug",
            "in_progress": "warning",
            "success": "success",
            "failed": "error",
            "skipped": "debug",
        }.get(data["status"].lower(), "info")

        table.add_row(
            key.replace("_", " ").title(),
            f"[{status_color}]{data['status'].upper()}[/{status_color}]",
            escape(data["message"]),
        )

    console.print(table)


# ----------------------------------------------------------------
# Logger Setup
# ----------------------------------------------------------------
def setup_logger(log_file: Union[str, Path], verbose: bool = False) -> logging.Logger:
    """Set up the file logger, plus a Rich console handler when verbose."""
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    for h in logger.handlers[:]:
        logger.removeHandler(h)
        h.close()

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if verbose:
        console_handler = RichHandler(console=console, rich_tracebacks=True)
        console_handler.setLevel(logging.DEBUG)
        logger.addHandler(console_handler)

    try:
        os.chmod(str(log_file), 0o600)
    except OSError as e:
        logger.warning(f"Could not set permissions on log file {log_file}: {e}")

    return logger


# ----------------------------------------------------------------
# Input Validation
# ----------------------------------------------------------------
def validate_site_name(name: str) -> bool:
    """Letters, digits, hyphens and dots; 3-63 characters; not a reserved name."""
    if not SITE_NAME_PATTERN.fullmatch(name):
        return False
    if not SITE_NAME_MIN_LENGTH <= len(name) <= SITE_NAME_MAX_LENGTH:
        return False
    return name.lower() not in RESERVED_SITE_NAMES


def validate_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


def hosts_entry_exists(hosts_content: str, site_name: str) -> bool:
    """Return True if a 127.0.0.1 line in a hosts file already maps ``site_name``."""
    wanted = site_name.lower()
    for line in hosts_content.splitlines():
        fields = line.split("#", 1)[0].split()
        if len(fields) < 2 or fields[0] != "127.0.0.1":
            continue
        if wanted in (host.lower() for host in fields[1:]):
            return True
    return False


# ----------------------------------------------------------------
# Command Execution Utilities
# ----------------------------------------------------------------
class CommandRunner:
    """
    Runs external commands, sending their combined output to the log file.

    Required commands raise CommandError on a non-zero exit; commands run
    with ``allow_failure=True`` only warn and hand back the result.
    """

    def __init__(
        self,
        logger: logging.Logger,
        timeout: int = OPERATION_TIMEOUT,
        use_sudo: Optional[bool] = None,
    ) -> None:
        self.logger = logger
        self.timeout = timeout
        self.use_sudo = os.geteuid() != 0 if use_sudo is None else use_sudo

    def _execute(
        self, cmd: List[str], input_text: Optional[str], interactive: bool
    ) -> subprocess.CompletedProcess:
        if interactive:
            return subprocess.run(cmd, timeout=self.timeout)
        return subprocess.run(
            cmd,
            input=input_text,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=self.timeout,
        )

    def _execute_with_spinner(
        self, cmd: List[str], description: str, input_text: Optional[str]
    ) -> subprocess.CompletedProcess:
        with Progress(
            SpinnerColumn(style=f"bold {NordColors.FROST_1}"),
            TextColumn("[bold]{task.description}[/bold]"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(escape(description), total=None)
            return self._execute(cmd, input_text, False)

    def run(
        self,
        cmd: List[str],
        description: Optional[str] = None,
        allow_failure: bool = False,
        sudo: bool = False,
        input_text: Optional[str] = None,
        interactive: bool = False,
    ) -> subprocess.CompletedProcess:
        """Run ``cmd``; prefix it with sudo when requested and not already root."""
        full_cmd = ["sudo", *cmd] if sudo and self.use_sudo else list(cmd)
        cmd_str = shlex.join(full_cmd)

        if description:
            print_step(description)
        self.logger.debug(f"Executing: {cmd_str}")

        try:
            if description and not interactive:
                result = self._execute_with_spinner(full_cmd, description, input_text)
            else:
                result = self._execute(full_cmd, input_text, interactive)
        except subprocess.TimeoutExpired:
            self.logger.error(
                f"Command timed out after {self.timeout} seconds: {cmd_str}"
            )
            result = subprocess.CompletedProcess(
                full_cmd, 124, stdout=f"Timed out after {self.timeout} seconds"
            )
        except FileNotFoundError as e:
            result = subprocess.CompletedProcess(full_cmd, 127, stdout=str(e))

        output = (result.stdout or "").strip()
        if output:
            self.logger.debug(output)

        if result.returncode != 0:
            if allow_failure:
                if description:
                    print_warning(f"Command failed but continuing: {description}")
                else:
                    self.logger.debug(
                        f"Command exited with {result.returncode}: {cmd_str}"
                    )
                return result
            if description:
                print_error(f"Failed to execute: {description}")
            print_error(f"Command: {cmd_str}")
            raise CommandError(cmd_str, result.returncode, output)

        if description:
            print_success(f"{description} completed")
        return result

    def succeeds(self, cmd: List[str], sudo: bool = False) -> bool:
        """Quietly probe whether ``cmd`` exits with status 0."""
        return self.run(cmd, allow_failure=True, sudo=sudo).returncode == 0

    def output_of(self, cmd: List[str], sudo: bool = False) -> str:
        """Return the stripped output of ``cmd``, or an empty string on failure."""
        result = self.run(cmd, allow_failure=True, sudo=sudo)
        if result.returncode != 0:
            return ""
        return (result.stdout or "").strip()

    def write_file(
        self,
        path: str,
        content: str,
        append: bool = False,
        description: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        """Write ``content`` to a root-owned location through ``sudo tee``."""
        cmd = ["tee", "-a", path] if append else ["tee", path]
        return self.run(cmd, description, sudo=True, input_text=content)


# ----------------------------------------------------------------
# Backups & Rollback
# ----------------------------------------------------------------
class BackupStore:
    """Copies configuration files aside before they are modified."""

    def __init__(self, backup_dir: Union[str, Path], logger: logging.Logger) -> None:
        self.backup_dir = Path(backup_dir)
        self.logger = logger
        self._saved: Dict[str, Path] = {}

    def create_backup(
        self, file_path: Union[str, Path], backup_name: str
    ) -> Optional[Path]:
        """Back up ``file_path`` as ``<backup_dir>/<backup_name>.backup`` if it exists."""
        source = Path(file_path)
        if not source.is_file():
            return None

        destination = self.backup_dir / f"{backup_name}.backup"
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, destination)
        except OSError as e:
            raise SetupError(f"Could not back up {source}: {e}") from e

        self._saved[str(source)] = destination
        self.logger.info(f"Backed up {source} to {destination}")
        print_info(f"Backed up {source} to {destination}")
        return destination

    def backup_for(self, file_path: Union[str, Path]) -> Optional[Path]:
        return self._saved.get(str(Path(file_path)))

    @property
    def exists(self) -> bool:
        return self.backup_dir.is_dir()


class Rollback:
    """Best-effort undo list, unwound in reverse order after a failure."""

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger
        self._actions: List[Tuple[str, Callable[[], None]]] = []

    def register(self, operation: str, action: Callable[[], None]) -> None:
        self._actions.append((operation, action))

    @property
    def operations(self) -> List[str]:
        return [operation for operation, _ in self._actions]

    def clear(self) -> None:
        self._actions.clear()

    def unwind(self) -> None:
        while self._actions:
            operation, action = self._actions.pop()
            print_warning(f"Rolling back changes for: {operation}")
            try:
                action()
            except (SetupError, OSError) as e:
                self.logger.warning(f"Rollback of {operation} failed: {e}")


# ----------------------------------------------------------------
# Configuration Templates
# ----------------------------------------------------------------
YII2_REWRITE_RULES: str = r"""        # Yii2: hide the entry script, route everything else through it
        RewriteRule ^index.php/ - [L,R=404]
        RewriteCond %{REQUEST_FILENAME} !-f
        RewriteCond %{REQUEST_FILENAME} !-d
        RewriteRule . index.php [L]

        <IfModule mod_headers.c>
            Header always set X-Content-Type-Options nosniff
            Header always set X-Frame-Options DENY
            Header always set X-XSS-Protection "1; mode=block"
        </IfModule>

        <FilesMatch "\.(htaccess|htpasswd|ini|log|sh|inc|bak)$">
            Require all denied
        </FilesMatch>"""

VUE_REWRITE_RULES: str = r"""        # Vue.js SPA: unknown paths fall back to the app shell
        RewriteCond %{REQUEST_FILENAME} !-f
        RewriteCond %{REQUEST_FILENAME} !-d
        RewriteRule . index.html [L]

        <IfModule mod_deflate.c>
            AddOutputFilterByType DEFLATE text/css text/javascript application/javascript application/json
        </IfModule>

        <IfModule mod_expires.c>
            ExpiresActive On
            ExpiresByType text/css "access plus 1 year"
            ExpiresByType application/javascript "access plus 1 year"
            ExpiresByType image/png "access plus 1 year"
            ExpiresByType image/jpg "access plus 1 year"
            ExpiresByType image/jpeg "access plus 1 year"
        </IfModule>"""


def render_vhost(site: SiteConfig, document_root: str) -> str:
    """Render the Apache virtual host for a Yii2 or Vue.js site."""
    rules = YII2_REWRITE_RULES if site.app_type is AppType.YII2 else VUE_REWRITE_RULES
    return f"""<VirtualHost *:80>
    ServerName {site.name}
    ServerAlias www.{site.name}
    ServerAdmin {site.admin_email}
    DocumentRoot "{document_root}"

    <Directory "{document_root}">
        Options -Indexes +FollowSymLinks -MultiViews
        AllowOverride All
        Require all granted

        RewriteEngine On

{rules}
    </Directory>

    ErrorLog ${{APACHE_LOG_DIR}}/{site.name}-error.log
    CustomLog ${{APACHE_LOG_DIR}}/{site.name}-access.log combined
    LogLevel warn

    <IfModule mod_headers.c>
        Header always set Referrer-Policy "strict-origin-when-cross-origin"
    </IfModule>
</VirtualHost>

# SSL virtual host placeholder, configure with actual certificates
# <VirtualHost *:443>
#     ServerName {site.name}
#     ServerAlias www.{site.name}
#     ServerAdmin {site.admin_email}
#     DocumentRoot "{document_root}"
#
#     SSLEngine on
#     SSLCertificateFile /path/to/certificate.crt
#     SSLCertificateKeyFile /path/to/private.key
# </VirtualHost>
"""


def render_post_receive_hook(
    site_name: str, work_tree: str, git_dir: str, deploy_log: str
) -> str:
    """Render a hook that checks out each pushed branch into the work tree."""
    return f"""#!/bin/bash

# Post-receive hook for {site_name}
WORK_TREE="{work_tree}"
GIT_DIR="{git_dir}"
DEPLOY_LOG="{deploy_log}"

log_deploy() {{
    echo "$(date '+%Y-%m-%d %H:%M:%S') - $1" >> "$DEPLOY_LOG"
}}

log_deploy "Starting deployment..."

while read -r oldrev newrev refname; do
    BRANCH="${{refname#refs/heads/}}"
    if [[ "$BRANCH" == "$refname" ]]; then
        log_deploy "Skipping non-branch ref: $refname"
        continue
    fi
    if [[ "$newrev" =~ ^0+$ ]]; then
        log_deploy "Skipping deleted branch: $BRANCH"
        continue
    fi

    log_deploy "Deploying branch: $BRANCH"

    git --work-tree="$WORK_TREE" --git-dir="$GIT_DIR" checkout -f "$BRANCH"

    find "$WORK_TREE" -type d -exec chmod 755 {{}} \\;
    find "$WORK_TREE" -type f -exec chmod 644 {{}} \\;

    # Yii console entry point
    if [[ -f "$WORK_TREE/yii" ]]; then
        chmod +x "$WORK_TREE/yii"
    fi

    log_deploy "Deployment completed for branch: $BRANCH"
done

log_deploy "Post-receive hook completed"
"""


def render_placeholder_index(site_name: str) -> str:
    title = html.escape(site_name)
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        f"<head><title>{title}</title></head>\n"
        "<body>\n"
        f"<h1>Vue.js App: {title}</h1>\n"
        "<p>Deploy your built Vue.js application here.</p>\n"
        "</body>\n"
        "</html>\n"
    )


# ----------------------------------------------------------------
# Guides
# ----------------------------------------------------------------
POSTGRESQL_GUIDE: str = f"""[bold {NordColors.YELLOW}]1. Set the PostgreSQL superuser password:[/]
   [command]sudo -u postgres psql[/]
   [command]ALTER USER postgres WITH ENCRYPTED PASSWORD 'your_secure_password';[/]

[bold {NordColors.YELLOW}]2. Configure authentication (required):[/]
   Edit [command]/etc/postgresql/*/main/pg_hba.conf[/] and change
   [error]local   all   postgres                  peer[/]
   to
   [success]local   all   postgres                  scram-sha-256[/]
   Other entries should use scram-sha-256 too, e.g.
   [command]host    all   all        127.0.0.1/32   scram-sha-256[/]
   [command]host    all   all        192.168.1.0/24 scram-sha-256[/]

[bold {NordColors.YELLOW}]3. Network access (optional, for remote connections):[/]
   Edit [command]/etc/postgresql/*/main/postgresql.conf[/] and set
   [command]listen_addresses = 'localhost'[/] (or '*' for all interfaces)

[bold {NordColors.YELLOW}]4. Restart and verify:[/]
   [command]sudo systemctl restart postgresql[/]
   [command]sudo -u postgres psql -c 'SELECT version();'[/]
   [command]psql -h localhost -U postgres -W[/]

[bold {NordColors.YELLOW}]5. Create your first database and user:[/]
   [command]CREATE DATABASE myapp;[/]
   [command]CREATE USER myuser WITH ENCRYPTED PASSWORD 'mypassword';[/]
   [command]GRANT ALL PRIVILEGES ON DATABASE myapp TO myuser;[/]

[bold {NordColors.RED}]Troubleshooting:[/]
   • Peer authentication failed: check pg_hba.conf (step 2)
   • Connection refused: make sure the service is running (step 4)
   • Password authentication failed: re-check the password (step 1)"""

SECURITY_RECOMMENDATIONS: str = """1. Hide the PHP version: set [command]expose_php = Off[/] in php.ini
2. Hide the Apache version: set [command]ServerTokens Prod[/] and [command]ServerSignature Off[/]
   in [command]/etc/apache2/conf-available/security.conf[/]
3. Configure the firewall: [command]sudo ufw allow 22,80,443/tcp && sudo ufw enable[/]
4. Keep web directory permissions tight
5. Configure SSL/TLS certificates for HTTPS (Let's Encrypt recommended)
6. Apply updates regularly: [command]sudo apt update && sudo apt upgrade[/]
7. Consider fail2ban for intrusion prevention"""


# ----------------------------------------------------------------
# Main Setup Class
# ----------------------------------------------------------------
class ServerSetup:
    """Interactive provisioning of PostgreSQL, Apache/PHP and Yii2 or Vue.js sites."""

    def __init__(
        self,
        config: Config,
        runner: Optional[CommandRunner] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.runner = runner or CommandRunner(self.logger, timeout=config.timeout)
        self.backups = BackupStore(config.backup_dir, self.logger)
        self.rollback = Rollback(self.logger)
        self.status = new_status()
        self.user = getpass.getuser()
        self.enabled_before: Set[str] = set()

    # ------------------------------------------------------------
    # Status tracking
    # ------------------------------------------------------------
    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        """Track a setup phase; a phase left in progress is marked successful."""
        self.status[name] = {"status": "in_progress", "message": ""}
        start = time.time()
        try:
            yield
        except Exception as e:
            elapsed = time.time() - start
            self.status[name] = {
                "status": "failed",
                "message": f"Failed after {elapsed:.2f}s: {e}",
            }
            raise
        if self.status[name]["status"] == "in_progress":
            elapsed = time.time() - start
            self.status[name] = {
                "status": "success",
                "message": f"Completed in {elapsed:.2f}s",
            }

    def skip(self, name: str, message: str) -> None:
        self.status[name] = {"status": "skipped", "message": message}

    @property
    def owner(self) -> str:
        return f"{self.user}:{self.config.web_group}"

    # ------------------------------------------------------------
    # Preflight
    # ------------------------------------------------------------
    def check_system_requirements(self) -> None:
        print_section("System Requirements Check")
        with self.phase("requirements"):
            if os.geteuid() == 0:
                print_info("Please run as a regular user with sudo privileges")
                raise SetupError(
                    "This script should not be run as root for security reasons"
                )

            if not self.runner.succeeds(["sudo", "-n", "true"]):
                print_info("Checking sudo privileges...")
                result = self.runner.run(
                    ["sudo", "-v"], allow_failure=True, interactive=True
                )
                if result.returncode != 0:
                    raise SetupError("This script requires sudo privileges")

            free_bytes = shutil.disk_usage("/").free
            if free_bytes < self.config.min_free_bytes:
                print_warning(
                    f"Less than {self.config.min_free_bytes // 1024**2} MiB "
                    f"of disk space available ({free_bytes // 1024**2} MiB free)"
                )
                if not Confirm.ask("Continue anyway?", default=False):
                    raise SetupCancelled("Setup cancelled: insufficient disk space")

            host = self.config.connectivity_host
            if not self.runner.succeeds(["ping", "-c", "1", "-W", "5", host]):
                print_info("Internet connection is required for package installation")
                raise SetupError("No internet connection detected")

            print_success("System requirements check passed")

    # ------------------------------------------------------------
    # Operator input
    # ------------------------------------------------------------
    def get_application_choice(self) -> AppType:
        print_section("Application Setup Selection")
        console.print("[bold]Choose the application type to set up:[/]")
        for app_type in AppType:
            console.print(
                f"  [bold {NordColors.FROST_2}]{app_type.value})[/] {app_type.label}"
            )
        console.print()

        choice = Prompt.ask(
            f"[bold {NordColors.FROST_1}]Enter your choice (1-5)[/]",
            choices=[app_type.value for app_type in AppType],
            show_choices=False,
        )
        self.logger.info(f"User selected application type: {choice}")
        return AppType(choice)

    def get_site_configuration(self, app_type: AppType) -> SiteConfig:
        """Ask for the site name, admin email and hosts preference."""
        print_section("Site Configuration")

        while True:
            name = Prompt.ask("Enter the site name (e.g., myapp.local)").strip()
            if not validate_site_name(name):
                print_error(
                    "Invalid site name! Use only letters, numbers, hyphens, "
                    "and dots (3-63 characters)"
                )
                continue

            web_dir = self.config.web_dir(name)
            if Path(web_dir).is_dir():
                print_warning(f"Directory {web_dir} already exists")
                if not Confirm.ask(
                    "Do you want to remove it and continue?", default=False
                ):
                    continue
                self.runner.run(
                    ["rm", "-rf", web_dir], "Removing existing directory", sudo=True
                )
            break

        while True:
            email = Prompt.ask("Enter admin email").strip()
            if validate_email(email):
                break
            print_error("Invalid email format!")

        configure_hostname = Confirm.ask(
            f"Configure hostname in {self.config.hosts_file}?", default=True
        )

        site = SiteConfig(
            name=name,
            admin_email=email,
            app_type=app_type,
            configure_hostname=configure_hostname,
        )

        table = Table(title="Site configuration", box=box.ROUNDED, style="banner")
        table.add_column("Setting", style="header")
        table.add_column("Value", style="info")
        table.add_row("Application", app_type.label)
        table.add_row("Site name", site.name)
        table.add_row("Admin email", site.admin_email)
        table.add_row("Configure hostname", "yes" if configure_hostname else "no")
        console.print(table)
        self.logger.info(
            f"Site configuration: name={site.name} admin={site.admin_email} "
            f"type={app_type.name} hostname={configure_hostname}"
        )
        return site

    # ------------------------------------------------------------
    # Package installation
    # ------------------------------------------------------------
    def install_postgresql(self) -> None:
        print_section("PostgreSQL Installation")
        with self.phase("postgresql"):
            if self.runner.succeeds(["systemctl", "is-active", "--quiet", "postgresql"]):
                print_warning("PostgreSQL is already installed and running")
                version = self.runner.output_of(
                    ["sudo", "-u", "postgres", "psql", "-tAc", "SELECT version();"]
                )
                print_info(
                    f"Current version: {version.splitlines()[0] if version else 'Unknown'}"
                )
                if not Confirm.ask("Continue with configuration?", default=True):
                    self.skip("postgresql", "Already running, left unchanged")
                    return

            self.runner.run(["apt", "update"], "Updating package index", sudo=True)
            self.runner.run(
                ["apt", "install", "-y", *POSTGRES_PACKAGES],
                "Installing PostgreSQL",
                sudo=True,
            )
            self.runner.run(
                ["systemctl", "enable", "postgresql"],
                "Enabling PostgreSQL service",
                sudo=True,
            )
            self.runner.run(
                ["systemctl", "start", "postgresql"],
                "Starting PostgreSQL service",
                sudo=True,
            )
            print_success("PostgreSQL installation completed")

        display_panel(POSTGRESQL_GUIDE, NordColors.FROST_2, "PostgreSQL Configuration Guide")

        print_info("PostgreSQL service status:")
        status = self.runner.run(
            ["systemctl", "status", "postgresql", "--no-pager", "-l"],
            allow_failure=True,
        )
        if status.stdout:
            console.print(status.stdout.rstrip(), markup=False, highlight=False)

    def install_apache_php(self) -> None:
        print_section("Apache2, PHP & Composer Installation")
        with self.phase("apache_php"):
            if self.runner.succeeds(["systemctl", "is-active", "--quiet", "apache2"]):
                print_warning("Apache2 is already running")
            if shutil.which("php"):
                print_warning("PHP is already installed")
            if shutil.which("composer"):
                print_warning("Composer is already installed")

            self.runner.run(["apt", "update"], "Updating package index", sudo=True)
            self.runner.run(
                ["apt", "install", "-y", *PHP_PACKAGES],
                "Installing Apache2 and PHP packages",
                sudo=True,
            )
            self.runner.run(
                ["systemctl", "enable", "apache2"], "Enabling Apache2 service", sudo=True
            )
            self.runner.run(
                ["systemctl", "start", "apache2"], "Starting Apache2 service", sudo=True
            )

            if not shutil.which("composer"):
                self.install_composer()

            for module in REQUIRED_APACHE_MODULES:
                self.runner.run(["a2enmod", module], f"Enabling mod_{module}", sudo=True)
            for module in OPTIONAL_APACHE_MODULES:
                self.runner.run(
                    ["a2enmod", module],
                    f"Enabling mod_{module}",
                    allow_failure=True,
                    sudo=True,
                )

            self.runner.run(
                ["systemctl", "restart", "apache2"], "Restarting Apache2", sudo=True
            )
            print_success("Apache2, PHP, and Composer installation completed")

        print_info("Installed versions:")
        for cmd in (["apache2", "-v"], ["php", "--version"], ["composer", "--version"]):
            output = self.runner.output_of(cmd)
            first_line = output.splitlines()[0] if output else "unavailable"
            console.print(f"  {cmd[0]}: {first_line}", markup=False, highlight=False)

        display_panel(
            SECURITY_RECOMMENDATIONS, NordColors.YELLOW, "Security Recommendations"
        )

    def install_composer(self) -> None:
        """Download the Composer installer, verify its SHA-384 signature and run it."""
        print_step("Installing Composer")
        try:
            signature = requests.get(COMPOSER_SIGNATURE_URL, timeout=DOWNLOAD_TIMEOUT)
            signature.raise_for_status()
            installer = requests.get(COMPOSER_INSTALLER_URL, timeout=DOWNLOAD_TIMEOUT)
            installer.raise_for_status()
        except requests.RequestException as e:
            raise SetupError(f"Failed to download Composer installer: {e}") from e

        expected = signature.text.strip()
        actual = hashlib.sha384(installer.content).hexdigest()
        if actual != expected:
            raise SetupError(
                "Composer installer signature mismatch, refusing to run it"
            )
        self.logger.info("Composer installer signature verified")

        fd, installer_path = tempfile.mkstemp(prefix="composer-setup-", suffix=".php")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(installer.content)
            self.runner.run(
                [
                    "php",
                    installer_path,
                    f"--install-dir={COMPOSER_INSTALL_DIR}",
                    "--filename=composer",
                ],
                "Installing Composer globally",
                sudo=True,
            )
        finally:
            Path(installer_path).unlink(missing_ok=True)

    # ------------------------------------------------------------
    # Site provisioning
    # ------------------------------------------------------------
    def setup_web_directory(self, site: SiteConfig) -> None:
        web_dir = self.config.web_dir(site.name)
        with self.phase("web_directory"):
            print_step(f"Setting up web directory: {web_dir}")
            self.runner.run(["mkdir", "-p", web_dir], "Creating web directory", sudo=True)
            self.runner.run(
                ["chown", self.owner, web_dir], "Setting directory ownership", sudo=True
            )
            self.runner.run(
                ["chmod", "755", web_dir], "Setting directory permissions", sudo=True
            )

            if site.app_type is AppType.VUE:
                index_file = f"{web_dir}/index.html"
                self.runner.write_file(
                    index_file,
                    render_placeholder_index(site.name),
                    description="Creating placeholder index.html",
                )
                self.runner.run(["chown", self.owner, index_file], sudo=True)
            else:
                print_info("Yii2 application structure will be created after Git deployment")

            print_success("Web directory setup completed")

    def setup_git_repository(self, site: SiteConfig) -> None:
        repo_dir = self.config.repo_dir(site.name)
        hook_file = f"{repo_dir}/hooks/post-receive"
        deploy_log = self.config.deploy_log(site.name)

        with self.phase("git_repository"):
            print_step(f"Setting up Git repository: {repo_dir}")
            self.runner.run(
                ["mkdir", "-p", repo_dir], "Creating Git repository directory", sudo=True
            )
            self.runner.run(
                ["chown", self.owner, repo_dir],
                "Setting Git directory ownership",
                sudo=True,
            )
            self.runner.run(
                ["chmod", "750", repo_dir], "Setting Git directory permissions", sudo=True
            )
            self.runner.run(
                ["git", "init", "--bare", repo_dir], "Initializing bare Git repository"
            )

            self.backups.create_backup(hook_file, f"{site.name}-post-receive")
            self.runner.write_file(
                hook_file,
                render_post_receive_hook(
                    site.name, self.config.web_dir(site.name), repo_dir, deploy_log
                ),
                description="Creating post-receive hook",
            )
            self.runner.run(
                ["chmod", "+x", hook_file],
                "Making post-receive hook executable",
                sudo=True,
            )
            self.runner.run(
                ["chown", self.owner, hook_file], "Setting hook ownership", sudo=True
            )

            # The hook runs as the pushing user and must be able to append here
            self.runner.run(["touch", deploy_log], "Creating deploy log", sudo=True)
            self.runner.run(["chown", self.owner, deploy_log], sudo=True)
            self.runner.run(["chmod", "664", deploy_log], sudo=True)

            print_success("Git repository setup completed")

    def setup_apache_virtualhost(self, site: SiteConfig) -> None:
        vhost_file = self.config.vhost_file(site.name)
        document_root = site.document_root(self.config)

        with self.phase("virtual_host"):
            print_step("Creating Apache virtual host configuration")
            if os.path.lexists(self.config.enabled_link(site.name)):
                self.enabled_before.add(site.name)
            self.backups.create_backup(vhost_file, f"{site.name}-apache")
            self.runner.write_file(
                vhost_file,
                render_vhost(site, document_root),
                description=f"Writing {vhost_file}",
            )

            result = self.runner.run(
                ["apache2ctl", "configtest"], allow_failure=True, sudo=True
            )
            if result.returncode != 0:
                if result.stdout:
                    console.print(result.stdout.rstrip(), markup=False, highlight=False)
                raise SetupError("Apache configuration test failed")

            self.runner.run(
                ["a2ensite", f"{site.name}.conf"],
                "Enabling site configuration",
                sudo=True,
            )
            self.runner.run(
                ["systemctl", "reload", "apache2"],
                "Reloading Apache configuration",
                sudo=True,
            )
            print_success("Apache virtual host configuration completed")

    def configure_hostname(self, site: SiteConfig) -> None:
        if not site.configure_hostname:
            self.skip("hostname", "Not requested")
            return

        hosts_file = Path(self.config.hosts_file)
        with self.phase("hostname"):
            print_step(f"Configuring hostname in {hosts_file}")
            try:
                content = hosts_file.read_text()
            except FileNotFoundError:
                content = ""

            if hosts_entry_exists(content, site.name):
                print_warning(f"Hostname entry already exists in {hosts_file}")
            else:
                self.backups.create_backup(hosts_file, "hosts")
                entry = f"127.0.0.1 {site.name} www.{site.name}\n"
                if content and not content.endswith("\n"):
                    entry = "\n" + entry
                self.runner.write_file(
                    str(hosts_file),
                    entry,
                    append=True,
                    description=f"Adding hostname to {hosts_file}",
                )
            print_success("Hostname configuration completed")

    # ------------------------------------------------------------
    # Rollback operations
    # ------------------------------------------------------------
    def rollback_web_directory(self, site: SiteConfig) -> None:
        self.runner.run(
            ["rm", "-rf", self.config.web_dir(site.name)], allow_failure=True, sudo=True
        )

    def rollback_git_directory(self, site: SiteConfig, reused: bool = False) -> None:
        """Remove a repository created by this run, or restore the hook of a reused one."""
        if reused:
            hook_file = f"{self.config.repo_dir(site.name)}/hooks/post-receive"
            backup = self.backups.backup_for(hook_file)
            if backup is not None:
                self.runner.run(
                    ["cp", "-p", str(backup), hook_file], allow_failure=True, sudo=True
                )
            return

        self.runner.run(
            ["rm", "-rf", self.config.repo_dir(site.name)], allow_failure=True, sudo=True
        )
        self.runner.run(
            ["rm", "-f", self.config.deploy_log(site.name)], allow_failure=True, sudo=True
        )

    def rollback_apache_config(self, site: SiteConfig) -> None:
        vhost_file = self.config.vhost_file(site.name)
        self.runner.run(["a2dissite", f"{site.name}.conf"], allow_failure=True, sudo=True)
        self.runner.run(["rm", "-f", vhost_file], allow_failure=True, sudo=True)
        backup = self.backups.backup_for(vhost_file)
        if backup is not None:
            self.runner.run(
                ["cp", str(backup), vhost_file], allow_failure=True, sudo=True
            )
            if site.name in self.enabled_before:
                self.runner.run(
                    ["a2ensite", f"{site.name}.conf"], allow_failure=True, sudo=True
                )
        self.runner.run(["systemctl", "reload", "apache2"], allow_failure=True, sudo=True)

    def rollback_hosts_entry(self) -> None:
        backup = self.backups.backup_for(self.config.hosts_file)
        if backup is None:
            return
        self.runner.run(
            ["cp", str(backup), self.config.hosts_file], allow_failure=True, sudo=True
        )

    def provision_site(self, site: SiteConfig) -> None:
        """Provision a Yii2 or Vue.js site, undoing created artifacts on failure."""
        try:
            if self.runner.succeeds(["systemctl", "is-active", "--quiet", "apache2"]):
                print_info("Apache2 is already running, skipping base installation")
                self.skip("apache_php", "Apache2 already running")
            else:
                self.install_apache_php()

            self.rollback.register(
                "web_directory", lambda: self.rollback_web_directory(site)
            )
            self.setup_web_directory(site)

            if site.app_type is AppType.YII2:
                repo_dir = self.config.repo_dir(site.name)
                reused = Path(repo_dir).exists()
                if reused:
                    print_warning(
                        f"Git repository {repo_dir} already exists and will be reused"
                    )
                self.rollback.register(
                    "git_directory", lambda: self.rollback_git_directory(site, reused)
                )
                self.setup_git_repository(site)
            else:
                self.skip("git_repository", "Not used for Vue.js")

            self.rollback.register(
                "apache_config", lambda: self.rollback_apache_config(site)
            )
            self.setup_apache_virtualhost(site)

            self.rollback.register("hosts_entry", self.rollback_hosts_entry)
            self.configure_hostname(site)
        except Exception:
            self.rollback.unwind()
            raise

        self.rollback.clear()
        self.display_completion_message(site)

    # ------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------
    def display_completion_message(self, site: SiteConfig) -> None:
        is_yii2 = site.app_type is AppType.YII2
        framework = "Yii2" if is_yii2 else "Vue.js"
        web_dir = self.config.web_dir(site.name)
        repo_dir = self.config.repo_dir(site.name)
        server = f"{self.user}@{socket.gethostname()}"

        console.print(create_header("Complete"))
        print_success(f"Your {framework} application server is ready!")

        table = Table(title="Server Information", box=box.ROUNDED, style="banner")
        table.add_column("Item", style="header")
        table.add_column("Value", style="info")
        table.add_row("Site URL", f"http://{site.name}")
        table.add_row("Document Root", site.document_root(self.config))
        table.add_row("Admin Email", site.admin_email)
        table.add_row("Log File", self.config.log_file)
        if self.backups.exists:
            table.add_row("Backups", str(self.backups.backup_dir))
        console.print(table)

        if is_yii2:
            steps = f"""1. Add the remote to your local repository:
   [command]git remote add production {server}:{repo_dir}[/]

2. Deploy your application:
   [command]git push production main[/]

3. Install dependencies on the server:
   [command]cd {web_dir}[/]
   [command]composer install --no-dev --optimize-autoloader[/]

4. Configure the database connection:
   Edit [command]{web_dir}/config/db.php[/]

5. Run migrations (if applicable):
   [command]./yii migrate[/]

6. Make runtime directories writable:
   [command]sudo chown -R {self.owner} {web_dir}[/]
   [command]sudo chmod -R 775 {web_dir}/runtime {web_dir}/web/assets[/]"""
        else:
            steps = f"""1. Build your Vue.js application locally:
   [command]npm run build[/]

2. Deploy using rsync:
   [command]rsync -avz --delete dist/ {server}:{web_dir}/[/]

3. Or keep it in a deploy.sh script:
   [command]#!/bin/bash[/]
   [command]npm run build[/]
   [command]rsync -avz --delete dist/ {server}:{web_dir}/[/]
   [command]ssh {server} "sudo systemctl reload apache2"[/]"""
        display_panel(steps, NordColors.FROST_2, f"{framework} Application Deployment")

        commands = f"""• Test site: [command]curl -I http://{site.name}[/]
• Apache config test: [command]sudo apache2ctl configtest[/]
• Restart Apache: [command]sudo systemctl restart apache2[/]
• Apache status: [command]sudo systemctl status apache2[/]
• Site logs: [command]sudo tail -f /var/log/apache2/{site.name}-*.log[/]
• Disable the default site: [command]sudo a2dissite 000-default.conf && sudo systemctl reload apache2[/]"""
        if is_yii2:
            commands += (
                f"\n• Deployment log: [command]tail -f "
                f"{self.config.deploy_log(site.name)}[/]"
            )
        display_panel(commands, NordColors.FROST_3, "Useful Commands")
        display_panel(
            SECURITY_RECOMMENDATIONS, NordColors.YELLOW, "Security Recommendations"
        )

    # ------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------
    def run(self) -> int:
        """Run the whole interactive flow and return the process exit code."""
        console.print(create_header())
        print_info(f"Log file: {self.config.log_file}")

        try:
            self.check_system_requirements()
            app_type = self.get_application_choice()

            if app_type is AppType.EXIT:
                print_info("Setup cancelled by user")
                return 0
            if app_type is AppType.POSTGRESQL:
                self.install_postgresql()
            elif app_type is AppType.APACHE_PHP:
                self.install_apache_php()
            else:
                site = self.get_site_configuration(app_type)
                self.provision_site(site)
        except SetupError as e:
            print_error(str(e))
            return 1
        finally:
            if any(data["status"] != "pending" for data in self.status.values()):
                print_status_report(self.status)

        print_success("Script execution completed successfully")
        return 0


# ----------------------------------------------------------------
# Signal Handling and Cleanup
# ----------------------------------------------------------------
def signal_handler(sig: int, frame: Any) -> None:
    """Exit immediately on SIGINT/SIGTERM."""
    try:
        sig_name = signal.Signals(sig).name
    except ValueError:
        sig_name = f"signal {sig}"
    print_warning(f"Process interrupted by {sig_name}")
    sys.exit(128 + sig)


def report_artifacts(config: Config) -> None:
    """Point the operator at the backup directory and log file on exit."""
    if Path(config.backup_dir).is_dir():
        print_info(f"Backup files available at: {config.backup_dir}")
    print_info(f"Full log available at: {config.log_file}")


# ----------------------------------------------------------------
# Main CLI Entry Point with Click
# ----------------------------------------------------------------
@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Log file path [default: /tmp/server_setup_<timestamp>.log]",
)
@click.option(
    "--backup-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Where overwritten configs are saved [default: /tmp/server_setup_backup_<timestamp>]",
)
@click.option("--www-root", default="/var/www", show_default=True, help="Parent of site web directories.")
@click.option("--repo-root", default="/var/repo", show_default=True, help="Parent of bare Git repositories.")
@click.option(
    "--sites-dir",
    default="/etc/apache2/sites-available",
    show_default=True,
    help="Apache sites-available directory.",
)
@click.option("--hosts-file", default="/etc/hosts", show_default=True, help="Hosts file to update.")
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    default=OPERATION_TIMEOUT,
    show_default=True,
    help="Timeout in seconds for each external command.",
)
@click.option("-v", "--verbose", is_flag=True, help="Echo the debug log to the console.")
@click.version_option(VERSION, prog_name=APP_NAME)
def main(
    log_file: Optional[str],
    backup_dir: Optional[str],
    www_root: str,
    repo_root: str,
    sites_dir: str,
    hosts_file: str,
    timeout: int,
    verbose: bool,
) -> None:
    """
    Server Setup - interactive provisioning for PostgreSQL, Apache2/PHP/Composer,
    and Yii2 or Vue.js sites on Ubuntu.
    """
    config = Config(
        www_root=www_root,
        repo_root=repo_root,
        sites_available=sites_dir,
        hosts_file=hosts_file,
        timeout=timeout,
    )
    if log_file:
        config.log_file = log_file
    if backup_dir:
        config.backup_dir = backup_dir

    install_rich_traceback(show_locals=False)
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    atexit.register(report_artifacts, config)

    try:
        setup_logger(config.log_file, verbose)
    except OSError as e:
        print_error(f"Could not open log file {config.log_file}: {e}")
        sys.exit(1)

    try:
        exit_code = ServerSetup(config).run()
    except Exception as e:
        print_error(f"An unexpected error occurred: {e}")
        console.print_exception()
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
