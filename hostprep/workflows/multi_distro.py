# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Server toolbox for Debian, RHEL and Arch families.

Package names are given per family; the family is detected on the host.
"""
from typing import Mapping
from typing import Sequence

from hostprep._config_files import ReplaceLine
from hostprep._config_files import WriteFile
from hostprep._core import CompositeCommand
from hostprep._core import Run
from hostprep._download import DownloadBinary
from hostprep._packages import InstallPackages
from hostprep._services import EnableService
from hostprep._services import RestartService
from hostprep._step import Step
from hostprep._users import AddSystemUser
from hostprep._users import AddUser
from hostprep._users import AddUserToGroup
from hostprep._users import GrantSudo


def steps(config: Mapping[str, str]) -> Sequence[Step]:
    user = config['user_name']
    home = f'/home/{user}'
    return [
        Step('user', CompositeCommand([
            AddUser(user),
            Run(f'getent group sudo && usermod -aG sudo {user} || usermod -aG wheel {user}'),
            GrantSudo(user),
            ])),
        Step('common_packages', InstallPackages(
            debian=[
                'curl', 'wget', 'git', 'unzip', 'build-essential', 'software-properties-common',
                'zsh', 'tmux', 'fzf', 'ripgrep', 'bat',
                'python3', 'python3-pip', 'python3-venv',
                'docker.io', 'docker-compose',
                'ansible',
                'ufw', 'fail2ban',
                'jq', 'yq',
                'gnupg', 'lsb-release', 'ca-certificates',
                'net-tools', 'htop', 'btop', 'iftop', 'nmap',
                'iperf3', 'dnsutils', 'whois', 'tcpdump',
                'neovim', 'openjdk-17-jdk',
                ],
            rhel=[
                'epel-release',
                'curl', 'wget', 'git', 'unzip', 'make', 'gcc', 'zsh', 'tmux',
                'python3', 'python3-pip', 'python3-virtualenv',
                'docker', 'docker-compose',
                'ansible',
                'firewalld', 'fail2ban',
                'jq',
                'glances', 'htop', 'iftop', 'nmap',
                'ripgrep', 'fzf', 'bat',
                'java-17-openjdk',
                'iperf', 'bind-utils', 'whois', 'tcpdump',
                'neovim',
                ],
            arch=[
                'curl', 'wget', 'git', 'unzip', 'base-devel', 'zsh', 'tmux',
                'python', 'python-pip',
                'docker', 'docker-compose',
                'ansible',
                'ufw', 'fail2ban',
                'jq',
                'glances', 'htop', 'iftop', 'nmap',
                'ripgrep', 'fzf', 'bat',
                'jdk-openjdk',
                'iperf', 'dnsutils', 'whois', 'tcpdump',
                'neovim',
                ],
            )),
        Step('terraform', Run('''
            command -v terraform && exit 0
            . /etc/os-release
            case " $ID $ID_LIKE " in
              *" debian "*|*" ubuntu "*)
                curl -fsSL https://apt.releases.hashicorp.com/gpg | gpg --batch --yes --dearmor -o /usr/share/keyrings/hashicorp.gpg
                echo "deb [signed-by=/usr/share/keyrings/hashicorp.gpg] https://apt.releases.hashicorp.com $(lsb_release -cs) main" > /etc/apt/sources.list.d/hashicorp.list
                apt-get update -y && apt-get install -y terraform
                ;;
              *" rhel "*|*" fedora "*|*" centos "*)
                dnf install -y dnf-plugins-core
                dnf config-manager --add-repo https://rpm.releases.hashicorp.com/RHEL/hashicorp.repo
                dnf install -y terraform
                ;;
              *" arch "*)
                pacman -S --needed --noconfirm terraform
                ;;
            esac
            ''')),
        Step('jenkins', Run('''
            command -v jenkins && exit 0
            . /etc/os-release
            case " $ID $ID_LIKE " in
              *" debian "*|*" ubuntu "*)
                curl -fsSL https://pkg.jenkins.io/debian/jenkins.io-2023.key | gpg --batch --yes --dearmor -o /usr/share/keyrings/jenkins.gpg
                echo "deb [signed-by=/usr/share/keyrings/jenkins.gpg] https://pkg.jenkins.io/debian binary/" > /etc/apt/sources.list.d/jenkins.list
                apt-get update -y && apt-get install -y jenkins
                ;;
              *" rhel "*|*" fedora "*|*" centos "*)
                curl -fsSL -o /etc/yum.repos.d/jenkins.repo https://pkg.jenkins.io/redhat-stable/jenkins.repo
                rpm --import https://pkg.jenkins.io/redhat-stable/jenkins.io-2023.key
                dnf install -y jenkins
                ;;
              *)
                echo "Jenkins is not packaged for $ID, skip"
                ;;
            esac
            ''')),
        Step('kubectl', DownloadBinary(
            'https://dl.k8s.io/release/{version}/bin/linux/amd64/kubectl',
            '/usr/local/bin/kubectl',
            version_url=f'https://dl.k8s.io/release/{config["k8s_release_channel"]}.txt',
            )),
        Step('prometheus_user', CompositeCommand([
            AddSystemUser('prometheus'),
            Run('''
                install -d -o prometheus -g prometheus /etc/prometheus
                install -d -o prometheus -g prometheus /var/lib/prometheus
                '''),
            ])),
        Step('vim', Run(f'''
            [ -d {home}/.vim_runtime ] && exit 0
            sudo -u {user} git clone --depth=1 https://github.com/amix/vimrc.git {home}/.vim_runtime
            sudo -u {user} sh {home}/.vim_runtime/install_awesome_vimrc.sh
            ''')),
        Step('ssh_fail2ban', CompositeCommand([
            ReplaceLine('/etc/ssh/sshd_config', 'PermitRootLogin', 'PermitRootLogin no'),
            Run('sshd -t'),
            # Service is "ssh" on Debian and "sshd" elsewhere.
            Run('systemctl restart sshd || systemctl restart ssh'),
            EnableService('fail2ban'),
            RestartService('fail2ban'),
            ])),
        Step('docker_group', AddUserToGroup(user, 'docker')),
        Step('cleanup_cron', WriteFile('/etc/cron.weekly/system-cleanup', '''
            #!/bin/sh
            command -v apt-get >/dev/null && apt-get autoremove -y && apt-get clean
            command -v dnf >/dev/null && dnf autoremove -y && dnf clean all
            command -v docker >/dev/null && docker system prune -af
            exit 0
            ''', mode=0o755)),
        Step('help_file', WriteFile(f'{home}/.help.txt', _help_text, owner=user)),
        ]


_help_text = '''
[JENKINS]
sudo cat /var/lib/jenkins/secrets/initialAdminPassword

[DOCKER]
sudo systemctl start docker
sudo usermod -aG docker $USER

[TERRAFORM]
terraform init
terraform validate
terraform plan

[KUBECTL]
kubectl config view
kubectl get nodes
kubectl get pods -A

[SYSTEM]
htop
ufw status
fail2ban-client status

[PYTHON VENV]
python3 -m venv .venv
source .venv/bin/activate

[GIT]
git config --global user.name "Your Name"
git config --global user.email "you@example.com"
'''
