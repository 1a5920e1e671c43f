#!/usr/bin/env python3


class ErrorCode:
   ''' Error codes reported in the error field of an operation record. '''

   NONE = 0
   PLANNING_FAILED = 1
   POSE_SOURCE_UNAVAILABLE = 2
   CONFIGURATION_MISSING = 3
   PLANNING_TIMEOUT = 4


class EmulatorError(Exception):
   ''' Base class for failures reported to the caller as an error operation. '''

   error_code = ErrorCode.NONE


class PlanningFailed(EmulatorError):
   error_code = ErrorCode.PLANNING_FAILED

   def __init__(self, stage, detail=''):
      self.stage = stage
      message = f'Planning failed at stage {stage.name}'
      if detail: message += f': {detail}'
      super().__init__(message)


class PoseSourceUnavailable(EmulatorError):
   error_code = ErrorCode.POSE_SOURCE_UNAVAILABLE


class ConfigurationMissing(EmulatorError):
   error_code = ErrorCode.CONFIGURATION_MISSING


class PlanningTimeout(EmulatorError):
   error_code = ErrorCode.PLANNING_TIMEOUT
