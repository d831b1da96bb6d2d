"""
Custom exceptions for the SelfOS backend.
Provides specific exception types for better error handling and recovery.
"""


class SelfOSException(Exception):
    """Base exception for the application"""
    pass


class TaskNotFoundException(SelfOSException):
    """Raised when a task is not found"""
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task with ID {task_id} not found")


class ReminderNotFoundException(SelfOSException):
    """Raised when a reminder is not found"""
    def __init__(self, reminder_id: int):
        self.reminder_id = reminder_id
        super().__init__(f"Reminder with ID {reminder_id} not found")


class ValidationException(SelfOSException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")


class DatabaseException(SelfOSException):
    """Raised when database operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")
