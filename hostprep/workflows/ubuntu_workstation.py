# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""DevOps workstation on Ubuntu 22.04 (Jammy).

Meant for a fresh VM: the first run does the job,
later runs only fill the gaps left by failed steps.
"""
from typing import Mapping
from typing import Sequence

from hostprep._config_files import WriteFile
from hostprep._config_files import WriteFileIfAbsent
from hostprep._core import CompositeCommand
from hostprep._core import Run
from hostprep._download import DownloadBinary
from hostprep._download import InstallGithubRelease
from hostprep._packages import InstallPackages
from hostprep._packages import UpgradePackages
from hostprep._repositories import AddAptRepository
from hostprep._services import DisableService
from hostprep._services import EnableService
from hostprep._step import Step
from hostprep._users import AddUser
from hostprep._users import AddUserToGroup
from hostprep._users import GrantSudo
from hostprep._users import InstallAuthorizedKeys


def steps(config: Mapping[str, str]) -> Sequence[Step]:
    user = config['user_name']
    home = f'/home/{user}'
    return [
        Step('update', CompositeCommand([
            UpgradePackages(),
            InstallPackages(debian=[
                'ca-certificates', 'curl', 'gnupg', 'lsb-release', 'apt-transport-https',
                'software-properties-common',
                'unzip', 'zip', 'tar', 'gzip', 'xz-utils', 'bzip2',
                'build-essential', 'make', 'pkg-config',
                'jq', 'tree', 'htop', 'tmux', 'ripgrep', 'net-tools', 'iproute2', 'dnsutils',
                'nmap', 'tcpdump', 'iputils-ping',
                'git', 'vim', 'openssh-server',
                ]),
            EnableService('ssh'),
            ])),
        Step('user_create', CompositeCommand([
            AddUser(user, user.capitalize()),
            GrantSudo(user),
            InstallAuthorizedKeys(user, config['authorized_keys_src']),
            ])),
        Step('vim_config', WriteFile('/etc/vim/vimrc.local', '''
            set number
            syntax on
            set mouse=a
            set tabstop=2 shiftwidth=2 expandtab
            set termguicolors
            set background=dark
            ''')),
        Step('firewall_fail2ban', CompositeCommand([
            InstallPackages(debian=['ufw', 'fail2ban']),
            # Enabling twice is harmless, but it would reset the rules added by hand.
            Run('''
                ufw status | grep -q "Status: active" || {
                  ufw allow OpenSSH
                  ufw allow 80/tcp
                  ufw allow 443/tcp
                  ufw --force enable
                }
                '''),
            WriteFileIfAbsent('/etc/fail2ban/jail.local', '''
                [sshd]
                enabled = true
                bantime = 1h
                findtime = 10m
                maxretry = 5
                '''),
            EnableService('fail2ban'),
            ])),
        Step('docker', CompositeCommand([
            AddAptRepository(
                'docker',
                'https://download.docker.com/linux/ubuntu/gpg',
                'deb [arch={arch} signed-by={keyring}] https://download.docker.com/linux/ubuntu {codename} stable',
                ),
            InstallPackages(debian=[
                'docker-ce', 'docker-ce-cli', 'containerd.io',
                'docker-buildx-plugin', 'docker-compose-plugin',
                ]),
            EnableService('docker'),
            AddUserToGroup(user, 'docker'),
            ])),
        Step('hashicorp', CompositeCommand([
            AddAptRepository(
                'hashicorp',
                'https://apt.releases.hashicorp.com/gpg',
                'deb [signed-by={keyring}] https://apt.releases.hashicorp.com {codename} main',
                keyring_dir='/usr/share/keyrings',
                ),
            InstallPackages(debian=['terraform', 'vault']),
            # Vault is here for the CLI. Its server is not needed on a workstation.
            DisableService('vault'),
            ])),
        Step('awscli', Run('''
            command -v aws && exit 0
            TMP=$(mktemp -d)
            trap 'rm -rf "$TMP"' EXIT
            cd "$TMP"
            curl -fsSLO https://awscli.amazonaws.com/awscli-exe-linux-x86_64.zip
            unzip -q awscli-exe-linux-x86_64.zip
            ./aws/install --update
            ''')),
        Step('ansible', InstallPackages(debian=['ansible'])),
        Step('kubernetes_tools', CompositeCommand([
            DownloadBinary(
                'https://dl.k8s.io/release/{version}/bin/linux/amd64/kubectl',
                '/usr/local/bin/kubectl',
                version_url=f'https://dl.k8s.io/release/{config["k8s_release_channel"]}.txt',
                ),
            InstallGithubRelease('kubernetes-sigs/kind', 'kind-linux-amd64', '/usr/local/bin/kind'),
            InstallGithubRelease('derailed/k9s', 'k9s_Linux_amd64.tar.gz', '/usr/local/bin/k9s'),
            Run('''
                command -v helm && exit 0
                curl -fsSL https://raw.githubusercontent.com/helm/helm/main/scripts/get-helm-3 | bash
                '''),
            ])),
        Step('container_sec_tools', CompositeCommand([
            AddAptRepository(
                'trivy',
                'https://aquasecurity.github.io/trivy-repo/deb/public.key',
                'deb [signed-by={keyring}] https://aquasecurity.github.io/trivy-repo/deb {codename} main',
                keyring_dir='/usr/share/keyrings',
                ),
            InstallPackages(debian=['trivy']),
            InstallGithubRelease('hadolint/hadolint', 'hadolint-Linux-x86_64', '/usr/local/bin/hadolint'),
            ])),
        Step('python', InstallPackages(debian=['python3', 'python3-pip', 'python3-venv', 'pipx'])),
        Step('go', Run(f'''
            GO_VERSION={config["go_version"]}
            if /usr/local/go/bin/go version 2>/dev/null | grep -q "go$GO_VERSION "; then
              exit 0
            fi
            TMP=$(mktemp -d)
            trap 'rm -rf "$TMP"' EXIT
            curl -fsSL "https://go.dev/dl/go$GO_VERSION.linux-amd64.tar.gz" -o "$TMP/go.tar.gz"
            rm -rf /usr/local/go
            tar -C /usr/local -xzf "$TMP/go.tar.gz"
            echo 'export PATH=$PATH:/usr/local/go/bin' > /etc/profile.d/go.sh
            ''')),
        Step('nginx', CompositeCommand([
            InstallPackages(debian=['nginx']),
            EnableService('nginx'),
            ])),
        Step('nodejs', InstallPackages(debian=['nodejs', 'npm'])),
        Step('cli_qol', CompositeCommand([
            InstallPackages(debian=['fzf', 'bat', 'fd-find', 'ncdu', 'httpie', 'shellcheck', 'direnv']),
            # Ubuntu ships these under other names.
            Run('''
                [ -e /usr/local/bin/bat ] || ln -s /usr/bin/batcat /usr/local/bin/bat
                [ -e /usr/local/bin/fd ] || ln -s /usr/bin/fdfind /usr/local/bin/fd
                '''),
            ])),
        Step('k8s_verify', Run('''
            kubectl version --client
            kind version
            helm version --short
            ''')),
        Step('reminders', CompositeCommand([
            Run(f'install -d -m 0700 -o {user} -g {user} {home}/.aws'),
            WriteFileIfAbsent(f'{home}/.aws/credentials', '''
                [default]
                aws_access_key_id=YOUR_KEY_ID
                aws_secret_access_key=YOUR_SECRET
                ''', mode=0o600, owner=user),
            WriteFileIfAbsent(f'{home}/.aws/config', f'''
                [default]
                region={config["aws_region"]}
                output=json
                ''', mode=0o600, owner=user),
            ])),
        ]
