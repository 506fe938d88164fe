#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mobile Automation MCP - Python包发布配置

安装：
    pip install -e .
    pip install -e ".[ios,test]"

发布到PyPI：
    python setup.py sdist bdist_wheel
    twine upload dist/*
"""
from setuptools import setup, find_packages
from pathlib import Path

# 读取README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding='utf-8') if readme_file.exists() else ""

# 读取requirements
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_file.exists():
    with open(requirements_file, 'r', encoding='utf-8') as f:
        requirements = [
            line.strip()
            for line in f
            if line.strip() and not line.startswith('#')
        ]

setup(
    name="mobile-automation-mcp",
    version="1.0.0",
    description="移动端/桌面端 UI 自动化 MCP Server - 工具分发、多步 Flow 引擎、界面变化检测",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "ios": [
            "facebook-wda>=1.4.0",
            "tidevice>=0.11.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
        "all": [
            "facebook-wda>=1.4.0",
            "tidevice>=0.11.0",
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "mobile-automation=mobile_automation.mcp_tools.mcp_server:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Testing",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords="mobile automation testing android ios mcp flow",
)
