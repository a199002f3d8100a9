from pathlib import Path
from unittest import mock

import pytest

import app_server_setup
from app_server_setup import AppType, SetupCancelled, SetupError, SiteConfig

from conftest import RecordingRunner


@pytest.fixture(autouse=True)
def regular_user(monkeypatch):
    monkeypatch.setattr(app_server_setup.os, "geteuid", lambda: 1000)


def yii2_site(configure_hostname=True):
    return SiteConfig("shop.local", "admin@example.com", AppType.YII2, configure_hostname)


def vue_site(configure_hostname=True):
    return SiteConfig("spa.local", "admin@example.com", AppType.VUE, configure_hostname)


# ----------------------------------------------------------------
# Site provisioning
# ----------------------------------------------------------------
def test_yii2_site_creates_repository_and_hook(make_setup, config):
    runner = RecordingRunner()
    setup = make_setup(runner)
    site = yii2_site()

    setup.provision_site(site)

    web_dir = config.web_dir("shop.local")
    repo_dir = config.repo_dir("shop.local")
    hook_file = f"{repo_dir}/hooks/post-receive"
    deploy_log = config.deploy_log("shop.local")
    commands = runner.commands

    assert f"sudo mkdir -p {web_dir}" in commands
    assert f"sudo chown deploy:www-data {web_dir}" in commands
    assert f"sudo chmod 755 {web_dir}" in commands
    assert f"git init --bare {repo_dir}" in commands
    assert f"sudo chmod 750 {repo_dir}" in commands
    assert f"sudo chmod +x {hook_file}" in commands
    assert f"sudo chown deploy:www-data {deploy_log}" in commands
    assert commands.index(f"sudo tee {hook_file}") < commands.index(
        f"sudo chmod +x {hook_file}"
    )

    hook = runner.written[hook_file]
    assert f'WORK_TREE="{web_dir}"' in hook
    assert f'GIT_DIR="{repo_dir}"' in hook
    assert 'checkout -f "$BRANCH"' in hook

    vhost = runner.written[config.vhost_file("shop.local")]
    assert f'DocumentRoot "{web_dir}/web"' in vhost
    assert "sudo a2ensite shop.local.conf" in commands
    assert "sudo systemctl reload apache2" in commands

    assert runner.written[config.hosts_file] == "127.0.0.1 shop.local www.shop.local\n"
    assert setup.status["apache_php"]["status"] == "skipped"
    for phase in ("web_directory", "git_repository", "virtual_host", "hostname"):
        assert setup.status[phase]["status"] == "success"
    assert setup.rollback.operations == []


def test_vue_site_writes_placeholder_and_skips_git(make_setup, config):
    runner = RecordingRunner()
    setup = make_setup(runner)

    setup.provision_site(vue_site(configure_hostname=False))

    web_dir = config.web_dir("spa.local")
    assert "Vue.js App: spa.local" in runner.written[f"{web_dir}/index.html"]
    assert not any("git" in cmd for cmd in runner.calls)
    vhost = runner.written[config.vhost_file("spa.local")]
    assert f'DocumentRoot "{web_dir}"' in vhost
    assert "RewriteRule . index.html [L]" in vhost
    assert config.hosts_file not in runner.written
    assert setup.status["git_repository"]["status"] == "skipped"
    assert setup.status["hostname"]["status"] == "skipped"


def test_apache_installed_when_not_running(make_setup, monkeypatch):
    runner = RecordingRunner(failures=["systemctl is-active --quiet apache2"])
    setup = make_setup(runner)
    monkeypatch.setattr(app_server_setup.shutil, "which", lambda name: "/usr/bin/" + name)

    setup.provision_site(vue_site(configure_hostname=False))

    assert any(cmd.startswith("sudo apt install -y apache2 php") for cmd in runner.commands)
    assert setup.status["apache_php"]["status"] == "success"


def test_failed_configtest_rolls_back(make_setup, config):
    runner = RecordingRunner(failures=["apache2ctl configtest"])
    setup = make_setup(runner)

    with pytest.raises(SetupError, match="Apache configuration test failed"):
        setup.provision_site(yii2_site())

    vhost_file = config.vhost_file("shop.local")
    commands = runner.commands
    remove_vhost = commands.index(f"sudo rm -f {vhost_file}")
    remove_repo = commands.index(f"sudo rm -rf {config.repo_dir('shop.local')}")
    remove_web = commands.index(f"sudo rm -rf {config.web_dir('shop.local')}")

    assert "sudo a2dissite shop.local.conf" in commands
    assert commands[remove_vhost + 1:].count("sudo systemctl reload apache2") == 1
    assert remove_vhost < remove_repo < remove_web
    assert "sudo a2ensite shop.local.conf" not in commands
    assert config.hosts_file not in runner.written
    assert setup.status["virtual_host"]["status"] == "failed"
    assert setup.rollback.operations == []


def test_rollback_restores_overwritten_vhost(make_setup, config):
    vhost_file = Path(config.vhost_file("shop.local"))
    vhost_file.parent.mkdir(parents=True)
    vhost_file.write_text("# previous configuration\n")
    runner = RecordingRunner(failures=["apache2ctl configtest"])
    setup = make_setup(runner)

    with pytest.raises(SetupError):
        setup.provision_site(yii2_site())

    backup = Path(config.backup_dir) / "shop.local-apache.backup"
    assert backup.read_text() == "# previous configuration\n"
    assert f"sudo cp {backup} {vhost_file}" in runner.commands
    assert "sudo a2ensite shop.local.conf" not in runner.commands


def test_rollback_reenables_previously_enabled_site(make_setup, config):
    vhost_file = Path(config.vhost_file("shop.local"))
    vhost_file.parent.mkdir(parents=True)
    vhost_file.write_text("# previous configuration\n")
    enabled_link = Path(config.enabled_link("shop.local"))
    enabled_link.parent.mkdir(parents=True)
    enabled_link.symlink_to(vhost_file)
    runner = RecordingRunner(failures=["apache2ctl configtest"])
    setup = make_setup(runner)

    with pytest.raises(SetupError):
        setup.provision_site(yii2_site())

    backup = Path(config.backup_dir) / "shop.local-apache.backup"
    commands = runner.commands
    disable = commands.index("sudo a2dissite shop.local.conf")
    restore = commands.index(f"sudo cp {backup} {vhost_file}")
    reenable = commands.index("sudo a2ensite shop.local.conf")
    assert disable < restore < reenable
    assert "sudo systemctl reload apache2" in commands[reenable + 1:]


def test_reused_repository_hook_restored_on_rollback(make_setup, config):
    hook_file = Path(config.repo_dir("shop.local")) / "hooks" / "post-receive"
    hook_file.parent.mkdir(parents=True)
    hook_file.write_text("#!/bin/sh\n# custom deploy steps\n")
    runner = RecordingRunner(failures=["apache2ctl configtest"])
    setup = make_setup(runner)

    with pytest.raises(SetupError):
        setup.provision_site(yii2_site())

    backup = Path(config.backup_dir) / "shop.local-post-receive.backup"
    assert backup.read_text() == "#!/bin/sh\n# custom deploy steps\n"
    assert f"sudo tee {hook_file}" in runner.commands
    assert f"sudo cp -p {backup} {hook_file}" in runner.commands
    assert f"sudo rm -rf {config.repo_dir('shop.local')}" not in runner.commands


def test_existing_repository_is_not_removed_on_rollback(make_setup, config):
    Path(config.repo_dir("shop.local")).mkdir(parents=True)
    runner = RecordingRunner(failures=["apache2ctl configtest"])
    setup = make_setup(runner)

    with pytest.raises(SetupError):
        setup.provision_site(yii2_site())

    assert f"sudo rm -rf {config.repo_dir('shop.local')}" not in runner.commands


def test_rollback_failures_keep_first_error(make_setup, config):
    runner = RecordingRunner(failures=["apache2ctl configtest", "rm -rf", "a2dissite"])
    setup = make_setup(runner)

    with pytest.raises(SetupError, match="Apache configuration test failed"):
        setup.provision_site(vue_site())


# ----------------------------------------------------------------
# Hostname
# ----------------------------------------------------------------
def test_existing_hosts_entry_is_left_alone(make_setup, config):
    Path(config.hosts_file).write_text("127.0.0.1 localhost\n127.0.0.1 spa.local www.spa.local\n")
    runner = RecordingRunner()
    setup = make_setup(runner)

    setup.configure_hostname(vue_site())

    assert config.hosts_file not in runner.written
    assert not Path(config.backup_dir).exists()
    assert setup.status["hostname"]["status"] == "success"


def test_hosts_file_backed_up_before_append(make_setup, config):
    Path(config.hosts_file).write_text("127.0.0.1 localhost")
    runner = RecordingRunner()
    setup = make_setup(runner)

    setup.configure_hostname(vue_site())

    backup = Path(config.backup_dir) / "hosts.backup"
    assert backup.read_text() == "127.0.0.1 localhost"
    assert f"sudo tee -a {config.hosts_file}" in runner.commands
    assert runner.written[config.hosts_file] == "\n127.0.0.1 spa.local www.spa.local\n"

    setup.rollback_hosts_entry()
    assert f"sudo cp {backup} {config.hosts_file}" in runner.commands


# ----------------------------------------------------------------
# Operator input
# ----------------------------------------------------------------
def test_site_configuration_reprompts_until_valid(make_setup, answers):
    setup = make_setup()
    answers(
        prompts=["ab", "localhost", "good.local", "not-an-email", "admin@example.com"],
        confirms=[True],
    )

    site = setup.get_site_configuration(AppType.VUE)

    assert site == SiteConfig("good.local", "admin@example.com", AppType.VUE, True)


def test_existing_web_directory_removed_after_confirmation(make_setup, config, answers):
    Path(config.web_dir("shop.local")).mkdir(parents=True)
    runner = RecordingRunner()
    setup = make_setup(runner)
    answers(prompts=["shop.local", "admin@example.com"], confirms=[True, False])

    site = setup.get_site_configuration(AppType.YII2)

    assert site.name == "shop.local"
    assert site.configure_hostname is False
    assert f"sudo rm -rf {config.web_dir('shop.local')}" in runner.commands


def test_declining_removal_asks_for_another_name(make_setup, config, answers):
    Path(config.web_dir("shop.local")).mkdir(parents=True)
    runner = RecordingRunner()
    setup = make_setup(runner)
    answers(
        prompts=["shop.local", "other.local", "admin@example.com"],
        confirms=[False, True],
    )

    site = setup.get_site_configuration(AppType.YII2)

    assert site.name == "other.local"
    assert not any(cmd.startswith("sudo rm") for cmd in runner.commands)


def test_application_choice(make_setup, answers):
    setup = make_setup()
    answers(prompts=["3"])
    assert setup.get_application_choice() is AppType.YII2


# ----------------------------------------------------------------
# Package installation
# ----------------------------------------------------------------
def test_postgresql_install(make_setup):
    runner = RecordingRunner(failures=["systemctl is-active --quiet postgresql"])
    setup = make_setup(runner)

    setup.install_postgresql()

    commands = runner.commands
    assert "sudo apt update" in commands
    assert "sudo apt install -y postgresql postgresql-contrib" in commands
    assert "sudo systemctl enable postgresql" in commands
    assert "sudo systemctl start postgresql" in commands
    assert setup.status["postgresql"]["status"] == "success"


def test_running_postgresql_left_unchanged_when_declined(make_setup, answers):
    runner = RecordingRunner()
    setup = make_setup(runner)
    answers(confirms=[False])

    setup.install_postgresql()

    assert not any("apt" in cmd for cmd in runner.calls)
    assert setup.status["postgresql"]["status"] == "skipped"


def test_optional_apache_modules_only_warn(make_setup, monkeypatch):
    runner = RecordingRunner(failures=["a2enmod ssl", "a2enmod expires"])
    setup = make_setup(runner)
    monkeypatch.setattr(app_server_setup.shutil, "which", lambda name: "/usr/bin/" + name)

    setup.install_apache_php()

    assert "sudo a2enmod rewrite" in runner.commands
    assert "sudo a2enmod headers" in runner.commands
    assert "sudo systemctl restart apache2" in runner.commands
    assert setup.status["apache_php"]["status"] == "success"


def test_required_apache_module_failure_raises(make_setup, monkeypatch):
    runner = RecordingRunner(failures=["a2enmod rewrite"])
    setup = make_setup(runner)
    monkeypatch.setattr(app_server_setup.shutil, "which", lambda name: "/usr/bin/" + name)

    with pytest.raises(SetupError):
        setup.install_apache_php()
    assert setup.status["apache_php"]["status"] == "failed"


def fake_downloads(installer: bytes, signature: str):
    def get(url, timeout):
        response = mock.Mock()
        if url == app_server_setup.COMPOSER_SIGNATURE_URL:
            response.text = signature + "\n"
        else:
            response.content = installer
        return response

    return get


def test_composer_installer_verified_and_removed(make_setup, monkeypatch):
    installer = b"<?php echo 'composer';"
    signature = app_server_setup.hashlib.sha384(installer).hexdigest()
    monkeypatch.setattr(app_server_setup.requests, "get", fake_downloads(installer, signature))
    runner = RecordingRunner()
    setup = make_setup(runner)

    setup.install_composer()

    php_calls = [cmd for cmd in runner.calls if cmd[:2] == ["sudo", "php"]]
    assert len(php_calls) == 1
    assert php_calls[0][3:] == ["--install-dir=/usr/local/bin", "--filename=composer"]
    assert not Path(php_calls[0][2]).exists()


def test_composer_signature_mismatch_refuses(make_setup, monkeypatch):
    monkeypatch.setattr(
        app_server_setup.requests, "get", fake_downloads(b"tampered", "0" * 96)
    )
    runner = RecordingRunner()
    setup = make_setup(runner)

    with pytest.raises(SetupError, match="signature mismatch"):
        setup.install_composer()
    assert runner.calls == []


def test_composer_download_failure(make_setup, monkeypatch):
    def broken(url, timeout):
        raise app_server_setup.requests.ConnectionError("offline")

    monkeypatch.setattr(app_server_setup.requests, "get", broken)
    setup = make_setup()

    with pytest.raises(SetupError, match="Failed to download Composer installer"):
        setup.install_composer()


# ----------------------------------------------------------------
# Requirements and the full run
# ----------------------------------------------------------------
def test_root_is_refused(make_setup, monkeypatch):
    monkeypatch.setattr(app_server_setup.os, "geteuid", lambda: 0)
    setup = make_setup()

    with pytest.raises(SetupError, match="should not be run as root"):
        setup.check_system_requirements()
    assert setup.status["requirements"]["status"] == "failed"


def test_no_connectivity_fails(make_setup, config):
    config.min_free_bytes = 0
    setup = make_setup(RecordingRunner(failures=["ping"]))

    with pytest.raises(SetupError, match="No internet connection"):
        setup.check_system_requirements()


def test_low_disk_space_declined(make_setup, config, answers):
    config.min_free_bytes = 10**18
    setup = make_setup()
    answers(confirms=[False])

    with pytest.raises(SetupCancelled):
        setup.check_system_requirements()


def test_interactive_sudo_fallback(make_setup, config):
    config.min_free_bytes = 0
    runner = RecordingRunner(failures=["sudo -n true"])
    setup = make_setup(runner)

    setup.check_system_requirements()

    assert "sudo -v" in runner.commands


def test_run_menu_exit(make_setup, config, answers):
    config.min_free_bytes = 0
    setup = make_setup()
    answers(prompts=["5"])

    assert setup.run() == 0


def test_run_yii2_end_to_end(make_setup, config, answers):
    config.min_free_bytes = 0
    runner = RecordingRunner()
    setup = make_setup(runner)
    answers(prompts=["3", "shop.local", "admin@example.com"], confirms=[True])

    assert setup.run() == 0
    assert f"git init --bare {config.repo_dir('shop.local')}" in runner.commands


def test_run_failure_returns_one(make_setup, config, answers):
    config.min_free_bytes = 0
    runner = RecordingRunner(failures=["apache2ctl configtest"])
    setup = make_setup(runner)
    answers(prompts=["4", "spa.local", "admin@example.com"], confirms=[False])

    assert setup.run() == 1
    assert f"sudo rm -f {config.vhost_file('spa.local')}" in runner.commands
