from unittest.mock import MagicMock

import pytest

from conftest import FakePlanner, make_points
from emulator_errors import ErrorCode, PoseSourceUnavailable
from pick_operations import (
   OperationRecord, OperationType, GripperCommand, InfoCode,
   to_operations, error_operations, plan_pick_operations)
from planning_session import PlanningSession
from stage_planner import PlanResult, PlanStage, StagePlanner


def planned_pick(counts=(3, 4, 5, 6)):
   stages = [PlanStage.TO_APPROACH, PlanStage.TO_GRASP, PlanStage.TO_DEAPPROACH, PlanStage.TO_END]
   return [PlanResult(stage, True, make_points([0] * 6, [i + 1] * 6, count)) for i, (stage, count) in enumerate(zip(stages, counts))]


def test_successful_pick_has_fixed_operation_order():
   operations = to_operations(planned_pick(), info_markers=False)

   assert [op.operation_type for op in operations] == [
      OperationType.TRAJECTORY_CNT,
      OperationType.GRIPPER,
      OperationType.TRAJECTORY_FINE,
      OperationType.GRIPPER,
      OperationType.TRAJECTORY_FINE,
      OperationType.TRAJECTORY_CNT,
   ]
   assert [op.gripper for op in operations] == [
      GripperCommand.NONE, GripperCommand.OPEN, GripperCommand.NONE,
      GripperCommand.CLOSE, GripperCommand.NONE, GripperCommand.NONE,
   ]
   assert all(op.error == ErrorCode.NONE for op in operations)


def test_trajectory_points_reproduce_planner_output():
   results = planned_pick()
   operations = to_operations(results, info_markers=False)

   trajectories = [op for op in operations if op.operation_type in (OperationType.TRAJECTORY_CNT, OperationType.TRAJECTORY_FINE)]
   assert [len(op.points) for op in trajectories] == [3, 4, 5, 6]
   assert [p for op in trajectories for p in op.points] == [p for r in results for p in r.waypoints]
   assert all(op.points == [] for op in operations if op.operation_type == OperationType.GRIPPER)


def test_info_markers_are_appended():
   operations = to_operations(planned_pick())

   assert len(operations) == 9
   assert [(op.operation_type, op.info) for op in operations[6:]] == [
      (OperationType.INFO, InfoCode.TOOL_INVARIANCE),
      (OperationType.INFO, InfoCode.GRASP_POINT),
      (OperationType.INFO, InfoCode.GRASP_POINT_INVARIANCE),
   ]


def test_failed_stage_yields_single_error_record():
   results = planned_pick()
   results[1] = PlanResult(PlanStage.TO_GRASP, False, results[1].waypoints[:1], fraction=0.3)

   assert to_operations(results) == [OperationRecord(OperationType.ERROR, error=ErrorCode.PLANNING_FAILED)]


def test_incomplete_pick_yields_single_error_record():
   assert to_operations(planned_pick()[:2]) == error_operations(ErrorCode.PLANNING_FAILED)


def test_error_operations_carry_code():
   [record] = error_operations(ErrorCode.PLANNING_TIMEOUT)
   assert record.operation_type == OperationType.ERROR
   assert record.error == ErrorCode.PLANNING_TIMEOUT
   assert record.points == []
   assert record.gripper == GripperCommand.NONE
   assert record.info == InfoCode.NONE


def test_plan_pick_operations_successful(stage_planner):
   operations = plan_pick_operations(stage_planner, info_markers=False)

   assert [op.operation_type for op in operations] == [0, 2, 1, 2, 1, 0]


@pytest.mark.parametrize('failing_plan', [1, 2])
def test_plan_pick_operations_without_partial_trajectories(build_operations, failing_plan):
   operations = build_operations(FakePlanner(fail_plans=[failing_plan]))

   assert operations == [OperationRecord(OperationType.ERROR, error=ErrorCode.PLANNING_FAILED)]


def test_plan_pick_operations_reports_error_codes():
   stage_planner = MagicMock()
   stage_planner.plan_pick.side_effect = PoseSourceUnavailable('bin_pose down')

   assert plan_pick_operations(stage_planner) == error_operations(ErrorCode.POSE_SOURCE_UNAVAILABLE)


@pytest.fixture
def build_operations(pose_store, pose_source):
   sessions = []

   def _build(planner):
      session = PlanningSession(planner, timeout=5.0)
      sessions.append(session)
      return plan_pick_operations(StagePlanner(session, pose_store, pose_source))

   yield _build
   for session in sessions: session.shutdown()


def test_plan_pick_operations_reports_timeout(pose_store, pose_source):
   session = PlanningSession(FakePlanner(call_delay=0.2), timeout=0.05)
   try:
      operations = plan_pick_operations(StagePlanner(session, pose_store, pose_source))
   finally:
      session.shutdown()

   assert operations == error_operations(ErrorCode.PLANNING_TIMEOUT)


class RaisingPlanner(FakePlanner):

   def __init__(self, method, **kwargs):
      super().__init__(**kwargs)
      self.method = method


   def plan_to_joints(self, joints):
      if self.method == 'plan_to_joints': raise RuntimeError('joint values outside limits')
      return super().plan_to_joints(joints)


   def plan_to_pose(self, pose):
      if self.method == 'plan_to_pose': raise RuntimeError('no IK solution')
      return super().plan_to_pose(pose)


@pytest.mark.parametrize('method', ['plan_to_joints', 'plan_to_pose'])
def test_planner_exception_becomes_error_record(build_operations, method):
   operations = build_operations(RaisingPlanner(method))

   assert operations == error_operations(ErrorCode.PLANNING_FAILED)
