from __future__ import annotations

from typing import List, Dict

from pydantic import BaseModel


class TreeNode(BaseModel):
    name: str
    attributes: Dict[str, str] = {}
    children: List[TreeNode] = []


TreeNode.model_rebuild()
