#!/usr/bin/env python3
"""
pytest 配置文件，定义测试用的 fixtures
"""

import pytest

from netboxkit.netbox.client import NetboxClient


@pytest.fixture
def client() -> NetboxClient:
    """提供指向示例 NetBox 的客户端, 不会发出真实请求"""
    return NetboxClient(url="https://netbox.example.com/api", token="token-secret")
