from __future__ import annotations

from .tmux import PaneGeometry, Tmux, in_tmux

__all__ = ["PaneGeometry", "Tmux", "in_tmux"]
