"""部署器模块

- base.py: Deployer 抽象基类（四操作生命周期）
- none.py / bash.py / kops.py / anywhere.py: 各变体
- federation.py: 联邦控制面
- registry.py: 名称到变体的工厂
"""

from e2erun.services.deployers.anywhere import KubernetesAnywhereDeployer
from e2erun.services.deployers.base import Deployer
from e2erun.services.deployers.bash import BashDeployer
from e2erun.services.deployers.federation import FederationControlPlane
from e2erun.services.deployers.kops import KopsDeployer
from e2erun.services.deployers.none import NoneDeployer
from e2erun.services.deployers.registry import get_deployer

__all__ = [
    "Deployer",
    "NoneDeployer",
    "BashDeployer",
    "KopsDeployer",
    "KubernetesAnywhereDeployer",
    "FederationControlPlane",
    "get_deployer",
]
