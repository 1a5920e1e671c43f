import threading
import time
from types import SimpleNamespace

import numpy as np
import pytest

from poses import CartesianPose
from pose_store import PoseStore
from planning_session import PlanningSession
from stage_planner import StagePlanner


def make_points(start, target, count):
   ''' Joint trajectory points interpolated from start to target. '''
   start, target = np.asarray(start, dtype=float), np.asarray(target, dtype=float)
   return [
      SimpleNamespace(positions=list(start + (target - start) * (i + 1) / count), time_from_start=0.1 * (i + 1))
      for i in range(count)
   ]


def pose_joints(pose):
   # Deterministic joint values standing in for IK of a pose
   return list(pose.position) + [0.0, 0.0, 0.0]


class FakePlanner:
   ''' In-memory planner recording every call.

   fail_plans holds indices of planning calls (0 is the plan to the start
   pose) that fail. Planning call i returns i + 2 waypoints.
   '''

   def __init__(self, num_of_joints=6, fail_plans=(), cartesian_fraction=0.5, call_delay=0.0):
      self.current = [0.0] * num_of_joints
      self.start = list(self.current)
      self.fail_plans = set(fail_plans)
      self.cartesian_fraction = cartesian_fraction
      self.call_delay = call_delay
      self.calls = []
      self.plans = []
      self._lock = threading.Lock()


   def _record(self, *call):
      with self._lock:
         self.calls.append(call)
      if self.call_delay: time.sleep(self.call_delay)


   def reset_start_state(self):
      self._record('reset_start_state')
      self.start = list(self.current)


   def set_start_joints(self, joints):
      self._record('set_start_joints', list(joints))
      self.start = list(joints)


   def _plan(self, kind, target_joints):
      index = len(self.plans)
      points = make_points(self.start, target_joints, index + 2)
      failed = index in self.fail_plans
      self.plans.append(SimpleNamespace(kind=kind, start=list(self.start), points=points, failed=failed))
      return failed, points


   def plan_to_joints(self, joints):
      self._record('plan_to_joints', list(joints))
      failed, points = self._plan('joints', joints)
      return (False, []) if failed else (True, points)


   def plan_to_pose(self, pose):
      self._record('plan_to_pose', pose)
      failed, points = self._plan('pose', pose_joints(pose))
      return (False, []) if failed else (True, points)


   def plan_cartesian_path(self, poses, eef_step, jump_threshold):
      self._record('plan_cartesian_path', list(poses), eef_step, jump_threshold)
      failed, points = self._plan('cartesian', pose_joints(poses[-1]))
      if failed: return self.cartesian_fraction, points[:1]
      return 1.0, points


   def planning_calls(self):
      return [c for c in self.calls if c[0].startswith('plan_')]


class FakePoseSource:

   def __init__(self, error=None):
      self.approach = CartesianPose([0.5, 0.0, 0.4], [1.0, 0.0, 0.0, 0.0])
      self.grasp = CartesianPose([0.5, 0.0, 0.2], [1.0, 0.0, 0.0, 0.0])
      self.deapproach = CartesianPose([0.5, 0.0, 0.45], [1.0, 0.0, 0.0, 0.0])
      self.error = error
      self.calls = 0


   def get_pick_poses(self):
      self.calls += 1
      if self.error is not None: raise self.error
      return self.approach, self.grasp, self.deapproach


class FakeVisualizer:

   def __init__(self, error=None):
      self.trajectories = []
      self.error = error


   def show_trajectory(self, points):
      self.trajectories.append(list(points))
      if self.error is not None: raise self.error


START_JOINTS = [0.1, -0.2, 0.3, -0.4, 0.5, -0.6]
END_JOINTS = [1.0, 1.1, 1.2, 1.3, 1.4, 1.5]


@pytest.fixture
def planner():
   return FakePlanner()


@pytest.fixture
def pose_source():
   return FakePoseSource()


@pytest.fixture
def visualizer():
   return FakeVisualizer()


@pytest.fixture
def pose_store():
   store = PoseStore(6)
   store.set_boundary_poses(START_JOINTS, END_JOINTS)
   return store


@pytest.fixture
def session(planner):
   session = PlanningSession(planner, timeout=5.0)
   yield session
   session.shutdown()


@pytest.fixture
def stage_planner(session, pose_store, pose_source, visualizer):
   return StagePlanner(session, pose_store, pose_source, visualizer)
