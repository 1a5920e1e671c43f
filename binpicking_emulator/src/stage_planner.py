#!/usr/bin/env python3

import enum
import logging

from emulator_errors import ErrorCode, EmulatorError, PlanningFailed, ConfigurationMissing


logger = logging.getLogger('rosout.stage_planner')


class PlanStage(enum.Enum):
   TO_START = 0
   TO_APPROACH = 1
   TO_GRASP = 2
   TO_DEAPPROACH = 3
   TO_END = 4


class StageMode(enum.Enum):
   JOINT = 'joint'
   POSE = 'pose'
   CARTESIAN = 'cartesian'


class PlanResult:
   ''' Outcome of planning one stage of the pick. '''

   def __init__(self, stage, success, waypoints=(), fraction=1.0):
      self.stage = stage
      self.success = success
      self.waypoints = list(waypoints)
      self.fraction = fraction


   @property
   def error_code(self):
      return ErrorCode.NONE if self.success else ErrorCode.PLANNING_FAILED


   @property
   def final_positions(self):
      return list(self.waypoints[-1].positions)


   def __repr__(self):
      return f'PlanResult({self.stage.name}, success={self.success}, waypoints={len(self.waypoints)})'


class StagePlanner:
   ''' Plans start -> approach -> grasp -> deapproach -> end without executing anything.

   Every successful stage seeds the planner start state with its last waypoint,
   so the next stage is planned as if the previous one had been executed.
   '''

   CARTESIAN_EEF_STEP = 0.02
   CARTESIAN_JUMP_THRESHOLD = 0.0


   def __init__(self, session, pose_store, pose_source, visualizer=None,
                cartesian_grasp=True, require_initialization=True, strict_start_stage=False):
      self._session = session
      self._pose_store = pose_store
      self._pose_source = pose_source
      self._visualizer = visualizer
      self.cartesian_grasp = cartesian_grasp
      self.require_initialization = require_initialization
      self.strict_start_stage = strict_start_stage


   def plan_pick(self):
      ''' Returns the approach, grasp, deapproach and end PlanResults.

      Raises an EmulatorError subclass as soon as anything fails; no stage is
      planned after a failed one.
      '''
      if not self._pose_store.is_initialized:
         if self.require_initialization:
            raise ConfigurationMissing('Start and end poses were never initialized')
         logger.warning('Start and end poses were never initialized, planning with zero joint values')
      start_joints, end_joints = self._pose_store.get_boundary_poses()

      approach, grasp, deapproach = self._pose_source.get_pick_poses()
      path_mode = StageMode.CARTESIAN if self.cartesian_grasp else StageMode.POSE
      stages = [
         (PlanStage.TO_APPROACH, approach, StageMode.POSE, None),
         (PlanStage.TO_GRASP, grasp, path_mode, approach),
         (PlanStage.TO_DEAPPROACH, deapproach, path_mode, grasp),
         (PlanStage.TO_END, end_joints, StageMode.JOINT, None),
      ]

      with self._session.checkout() as planner:
         planner.reset_start_state()
         self._plan_to_start(planner, start_joints)
         results = []
         for stage, target, mode, origin in stages:
            result = self._plan_stage(planner, stage, target, mode, origin)
            if not result.success:
               detail = f'{result.fraction * 100:.2f}% of path achieved' if mode == StageMode.CARTESIAN else ''
               raise PlanningFailed(stage, detail)
            results.append(result)

      logger.info(f'Pick planned: {", ".join(f"{r.stage.name}={len(r.waypoints)}" for r in results)} waypoints')
      return results


   def _plan_to_start(self, planner, start_joints):
      # Only the end state of this plan is used, it never reaches the robot
      result = self._plan_stage(planner, PlanStage.TO_START, start_joints, StageMode.JOINT, visualize=False)
      if result.success: return
      if self.strict_start_stage: raise PlanningFailed(PlanStage.TO_START)
      logger.warning('Could not plan to start pose, planning from current state')


   def _request_plan(self, planner, stage, target, mode, origin):
      if mode == StageMode.JOINT:
         success, points = planner.plan_to_joints(target)
         fraction = 1.0 if success else 0.0
      elif mode == StageMode.POSE:
         success, points = planner.plan_to_pose(target)
         fraction = 1.0 if success else 0.0
      else:
         fraction, points = planner.plan_cartesian_path(
            [origin, target], self.CARTESIAN_EEF_STEP, self.CARTESIAN_JUMP_THRESHOLD)
         logger.info(f'{stage.name} Cartesian path: {fraction * 100.0:.2f}% achieved')
         success = fraction >= 1.0
      return success, points, fraction


   def _plan_stage(self, planner, stage, target, mode, origin=None, visualize=True):
      try:
         success, points, fraction = self._request_plan(planner, stage, target, mode, origin)
      except EmulatorError:
         raise
      except Exception as e:
         logger.error(f'Planner raised while planning stage {stage.name}: {type(e).__name__}: {e}')
         success, points, fraction = False, [], 0.0

      result = PlanResult(stage, bool(success) and len(points) > 0, points, fraction)
      if not result.success:
         logger.warning(f'Could not plan stage {stage.name}')
         return result

      planner.set_start_joints(result.final_positions)
      if visualize: self._visualize(result)
      return result


   def _visualize(self, result):
      if self._visualizer is None: return
      try:
         self._visualizer.show_trajectory(result.waypoints)
      except Exception as e:
         logger.warning(f'Could not visualize {result.stage.name} trajectory: {e}')
