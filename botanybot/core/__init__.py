"""
Core Infrastructure Module

Provides foundational services for the console core including:
- Event bus for inter-module communication
- Configuration management
- Logging setup
- Custom exceptions
- Shared data types
"""
