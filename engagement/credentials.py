# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Credential providers — where download bearer tokens come from.

The token exchange itself happens elsewhere; the pipeline only asks
get_token() and treats None as "not signed in".
"""

import os
from typing import Optional


class CredentialProvider:
    def get_token(self) -> Optional[str]:
        raise NotImplementedError


class EnvCredentialProvider(CredentialProvider):
    """Reads the token from an environment variable (HF_TOKEN by default)."""

    def __init__(self, var: str = "HF_TOKEN"):
        self.var = var

    def get_token(self) -> Optional[str]:
        token = os.environ.get(self.var, "").strip()
        return token or None


class StaticCredentialProvider(CredentialProvider):
    """Fixed token, e.g. handed over by the host app after sign-in."""

    def __init__(self, token: Optional[str] = None):
        self.token = token

    def get_token(self) -> Optional[str]:
        return self.token or None
