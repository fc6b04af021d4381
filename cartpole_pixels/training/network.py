"""Neural network definitions for DQN.

Keep networks in their own module so:
  - training loops stay readable
  - you can swap architectures without touching the algorithm code

The rest of the package only relies on the `nn.Module` surface
(forward / parameters / state_dict / load_state_dict). The two helpers at
the bottom expose parameters as an ordered list for code that wants plain
snapshots instead of state dicts.
"""

from __future__ import annotations

from typing import List

try:
    import torch
    import torch.nn as nn
    import torch.nn.functional as F
except ImportError as e:  # pragma: no cover
    raise ImportError("PyTorch is required. Install with: pip install torch") from e


def conv2d_size_out(size: int, kernel_size: int = 5, stride: int = 2) -> int:
    """Output length of an unpadded conv along one axis."""
    return (int(size) - (kernel_size - 1) - 1) // stride + 1


class QNetwork(nn.Module):
    """Small conv Q-network over screen differences.

    Input:  (B, in_channels, H, W)
    Output: (B, n_actions)

    Three 5x5/stride-2 conv layers with batch norm, then a linear head.
    H and W must be large enough to survive three convs (>= 29 px).
    """

    def __init__(self, height: int, width: int, n_actions: int = 2, in_channels: int = 1):
        super().__init__()
        self.conv1 = nn.Conv2d(int(in_channels), 16, kernel_size=5, stride=2)
        self.bn1 = nn.BatchNorm2d(16)
        self.conv2 = nn.Conv2d(16, 32, kernel_size=5, stride=2)
        self.bn2 = nn.BatchNorm2d(32)
        self.conv3 = nn.Conv2d(32, 32, kernel_size=5, stride=2)
        self.bn3 = nn.BatchNorm2d(32)

        convw = conv2d_size_out(conv2d_size_out(conv2d_size_out(width)))
        convh = conv2d_size_out(conv2d_size_out(conv2d_size_out(height)))
        if convw <= 0 or convh <= 0:
            raise ValueError(f"screen {height}x{width} is too small for the conv stack")
        self.head = nn.Linear(convw * convh * 32, int(n_actions))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        x = F.relu(self.bn1(self.conv1(x)))
        x = F.relu(self.bn2(self.conv2(x)))
        x = F.relu(self.bn3(self.conv3(x)))
        return self.head(x.view(x.size(0), -1))


def build_networks(height: int, width: int, n_actions: int, device) -> tuple[QNetwork, QNetwork]:
    """Create (policy_net, target_net) with identical weights."""
    policy_net = QNetwork(height, width, n_actions).to(device)
    target_net = QNetwork(height, width, n_actions).to(device)
    target_net.load_state_dict(policy_net.state_dict())  # copy weights so they are identical
    target_net.eval()
    return policy_net, target_net


def snapshot_parameters(net: nn.Module) -> List[torch.Tensor]:
    """Detached copies of `net.parameters()`, in order."""
    return [p.detach().clone() for p in net.parameters()]


def load_parameters(net: nn.Module, params: List[torch.Tensor]) -> None:
    """Overwrite `net.parameters()` in order with `params`."""
    own = list(net.parameters())
    if len(own) != len(params):
        raise ValueError(f"expected {len(own)} parameter tensors, got {len(params)}")
    with torch.no_grad():
        for p, src in zip(own, params):
            p.copy_(src)
