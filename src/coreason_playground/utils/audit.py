# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_playground

import hashlib

from coreason_playground.utils.logger import logger


class AuditLogger:
    """Audit trail for submitted code fragments.

    Records a SHA-256 fingerprint of every fragment before it reaches the guest runtime.
    """

    def __init__(self, service_name: str = "coreason-playground", enabled: bool = True):
        """Initializes the AuditLogger.

        Args:
            service_name: The name reported with every audit line.
            enabled: Whether to emit audit lines at all.
        """
        self.service_name = service_name
        self.enabled = enabled
        if self.enabled:
            logger.info(f"Audit logging enabled for {service_name}")

    def log_pre_execution(self, code: str) -> str:
        """Log a code execution attempt.

        Args:
            code: The fragment about to be executed.

        Returns:
            str: The SHA-256 hash of the fragment.
        """
        code_hash = hashlib.sha256(code.encode("utf-8")).hexdigest()
        if self.enabled:
            logger.info(f"AUDIT[{self.service_name}]: Executing code. Hash: {code_hash}, Length: {len(code)}")
        return code_hash
