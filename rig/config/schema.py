#!/usr/bin/env python3
"""
Configuration schema definition for validation
"""
from typing import Dict, Any, List

class ConfigSchema:
    """Configuration schema for validation"""

    SCHEMA = {
        'graph': {
            'contact_type': {'type': str, 'required': True},
            'cutoff': {'type': (int, float), 'required': True, 'min': 0},
        },
        'consensus': {
            'threshold': {'type': (int, float), 'required': False, 'min': 0, 'max': 1},
            'min_score': {'type': (int, float), 'required': False},
        },
        'evaluation': {
            'min_seq_sep': {'type': int, 'required': False, 'min': 1},
        },
        'io': {
            'casp_target': {'type': int, 'required': False, 'min': 0},
            'casp_model': {'type': int, 'required': False, 'min': 1},
        },
        'logging': {
            'level': {'type': str, 'required': False},
            'format': {'type': str, 'required': False},
            'log_dir': {'type': str, 'required': False},
        },
    }

    @staticmethod
    def _type_name(expected) -> str:
        if isinstance(expected, tuple):
            return " or ".join(t.__name__ for t in expected)
        return expected.__name__

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> List[str]:
        """Validate configuration against schema

        Args:
            config: Configuration to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        for section, fields in cls.SCHEMA.items():
            if any(props.get('required', False) for props in fields.values()):
                if section not in config:
                    errors.append(f"Missing required configuration section: {section}")
                    continue

            if section not in config:
                continue

            section_config = config[section]
            if not isinstance(section_config, dict):
                errors.append(f"Configuration section {section} must be a mapping")
                continue

            for field, props in fields.items():
                if field not in section_config:
                    if props.get('required', False):
                        errors.append(f"Missing required configuration field: {section}.{field}")
                    continue

                value = section_config[field]
                expected_type = props.get('type')
                # bool is an int subclass but never a valid number here
                if expected_type and (isinstance(value, bool) or not isinstance(value, expected_type)):
                    errors.append(
                        f"Invalid type for {section}.{field}: expected {cls._type_name(expected_type)}, "
                        f"got {type(value).__name__}"
                    )
                    continue

                if 'min' in props and value < props['min']:
                    errors.append(f"Value for {section}.{field} must be >= {props['min']}, got {value}")
                if 'max' in props and value > props['max']:
                    errors.append(f"Value for {section}.{field} must be <= {props['max']}, got {value}")

        return errors
