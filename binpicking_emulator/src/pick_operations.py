#!/usr/bin/env python3

import logging

from emulator_errors import ErrorCode, EmulatorError
from stage_planner import PlanStage


logger = logging.getLogger('rosout.operations')


class OperationType:
   TRAJECTORY_CNT = 0
   TRAJECTORY_FINE = 1
   GRIPPER = 2
   ERROR = 3
   INFO = 4


class GripperCommand:
   NONE = 0
   OPEN = 1
   CLOSE = 2


class InfoCode:
   NONE = 0
   TOOL_INVARIANCE = 1
   GRASP_POINT = 2
   GRASP_POINT_INVARIANCE = 3


class OperationRecord:
   ''' One instruction for the robot controller executing a pick. '''

   def __init__(self, operation_type, points=(), gripper=GripperCommand.NONE, error=ErrorCode.NONE, info=InfoCode.NONE):
      self.operation_type = operation_type
      self.points = list(points)
      self.gripper = gripper
      self.error = error
      self.info = info


   def to_msg(self):
      from photoneo_msgs.msg import operation as OperationMsg

      msg = OperationMsg()
      msg.operation_type = self.operation_type
      msg.points = list(self.points)
      msg.gripper = self.gripper
      msg.error = self.error
      msg.info = self.info
      return msg


   def __eq__(self, other):
      if not isinstance(other, OperationRecord): return NotImplemented
      return (self.operation_type, self.points, self.gripper, self.error, self.info) == \
         (other.operation_type, other.points, other.gripper, other.error, other.info)


   def __repr__(self):
      return (f'OperationRecord(type={self.operation_type}, points={len(self.points)}, '
              f'gripper={self.gripper}, error={self.error}, info={self.info})')


# Stage order expected from the planner and trajectory type sent for each stage
PICK_STAGES = [
   (PlanStage.TO_APPROACH, OperationType.TRAJECTORY_CNT),
   (PlanStage.TO_GRASP, OperationType.TRAJECTORY_FINE),
   (PlanStage.TO_DEAPPROACH, OperationType.TRAJECTORY_FINE),
   (PlanStage.TO_END, OperationType.TRAJECTORY_CNT),
]

# Gripper command issued after the trajectory of a stage
GRIPPER_AFTER = {
   PlanStage.TO_APPROACH: GripperCommand.OPEN,
   PlanStage.TO_GRASP: GripperCommand.CLOSE,
}

INFO_MARKERS = [InfoCode.TOOL_INVARIANCE, InfoCode.GRASP_POINT, InfoCode.GRASP_POINT_INVARIANCE]


def error_operations(error_code):
   return [OperationRecord(OperationType.ERROR, error=error_code)]


def to_operations(results, info_markers=True):
   ''' Serializes the planned pick into the operation sequence sent to the robot.

   A failed or incomplete plan yields a single ERROR record and nothing else.
   '''
   results = list(results)
   failed = next((r for r in results if not r.success), None)
   if failed is not None:
      logger.warning(f'Stage {failed.stage.name} failed, sending error operation')
      return error_operations(failed.error_code)
   if [r.stage for r in results] != [stage for stage, _ in PICK_STAGES]:
      logger.error(f'Unexpected stages {[r.stage.name for r in results]}, sending error operation')
      return error_operations(ErrorCode.PLANNING_FAILED)

   operations = []
   for result, (stage, trajectory_type) in zip(results, PICK_STAGES):
      operations.append(OperationRecord(trajectory_type, result.waypoints))
      if stage in GRIPPER_AFTER:
         operations.append(OperationRecord(OperationType.GRIPPER, gripper=GRIPPER_AFTER[stage]))
   if info_markers:
      operations.extend(OperationRecord(OperationType.INFO, info=code) for code in INFO_MARKERS)
   return operations


def plan_pick_operations(stage_planner, info_markers=True):
   ''' Plans one pick and always returns an operation list, errors included. '''
   try:
      return to_operations(stage_planner.plan_pick(), info_markers)
   except EmulatorError as e:
      logger.error(f'{type(e).__name__}: {e}')
      return error_operations(e.error_code)
