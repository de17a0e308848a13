"""
Query and Field Tokenizers.

A tokenizer turns text into QueryTokens. Double-quoted runs become single
quoted tokens (quotes stripped); everything else is split by a regular
expression, whitespace-delimited runs by default. Tokens are lowercased
and empty tokens are dropped.
"""

from __future__ import annotations

import re
from typing import List

from tableview.domain.entities import TokenizerCallback
from tableview.domain.value_objects import QueryToken


def create_regex_tokenizer(pattern: str = r"\S+") -> TokenizerCallback:
    """
    Create a tokenizer splitting on a regular expression.

    Args:
        pattern: Expression matching one unquoted token

    Returns:
        Tokenizer callback
    """
    regex = re.compile(rf'"[^"]*"|{pattern}')

    def tokenize(value: str) -> List[QueryToken]:
        tokens = []
        for match in regex.finditer(value):
            token = match.group(0).lower().strip()
            quoted = len(token) >= 2 and token.startswith('"') and token.endswith('"')
            if quoted:
                token = token[1:-1]
            # An empty token is a substring of every value.
            if token:
                tokens.append(QueryToken(value=token, quoted=quoted))
        return tokens

    return tokenize


whitespace_tokenizer = create_regex_tokenizer()
