#!/usr/bin/env python3
"""
Residue code conversion between one-letter and three-letter amino acid codes
"""
from Bio.Data.IUPACData import protein_letters
from Bio.SeqUtils import seq1, seq3

UNKNOWN_ONE_LETTER = 'X'
UNKNOWN_THREE_LETTER = 'XXX'

STANDARD_ONE_LETTER = frozenset(protein_letters)


def one_to_three(code: str) -> str:
    """Convert a one-letter code to an upper-case three-letter code

    Non-standard letters map to 'XXX'.
    """
    code = code.upper()
    if len(code) != 1 or code not in STANDARD_ONE_LETTER:
        return UNKNOWN_THREE_LETTER
    return seq3(code).upper()


def three_to_one(code: str) -> str:
    """Convert a three-letter code (any case) to a one-letter code, 'X' if unknown"""
    if len(code) != 3:
        return UNKNOWN_ONE_LETTER
    letter = seq1(code, undef_code=UNKNOWN_ONE_LETTER)
    return letter if letter in STANDARD_ONE_LETTER else UNKNOWN_ONE_LETTER


def is_standard_residue(code: str) -> bool:
    """True for the three-letter code of one of the 20 standard amino acids"""
    return three_to_one(code) != UNKNOWN_ONE_LETTER
