#!/usr/bin/env python3

import rospy
import moveit_commander

from sensor_msgs.msg import JointState as JointStateMsg
from moveit_msgs.msg import MoveItErrorCodes, RobotState as RobotStateMsg


def moveit_desc(result_code):
   ''' Name of a MoveIt error code, e.g. PLANNING_FAILED. '''
   if isinstance(result_code, MoveItErrorCodes): result_code = result_code.val
   for attr in dir(MoveItErrorCodes):
      val = getattr(MoveItErrorCodes, attr)
      if isinstance(val, int) and val == result_code: return attr
   return str(result_code)


class MoveItPlanner:
   ''' Plans on a MoveIt move group without ever executing the result.

   Plans return the joint trajectory points only, Cartesian paths return the
   achieved fraction alongside them.
   '''

   def __init__(self, group_name='manipulator', planner_id='RRTConnectkConfigDefault', goal_tolerance=0.001):
      self._robot = moveit_commander.RobotCommander()
      self._group = moveit_commander.MoveGroupCommander(group_name)
      self._group.set_planner_id(planner_id)
      self._group.set_goal_tolerance(goal_tolerance)
      self._joint_names = self._group.get_active_joints()


   @property
   def joint_names(self):
      return list(self._joint_names)


   def reset_start_state(self):
      self._group.set_start_state_to_current_state()


   def set_start_joints(self, joints):
      # Pretend the previous plan was executed
      robot_state = RobotStateMsg()
      robot_state.joint_state = JointStateMsg()
      robot_state.joint_state.name = self._joint_names
      robot_state.joint_state.position = list(joints)
      robot_state.is_diff = True
      self._group.set_start_state(robot_state)


   def plan_to_joints(self, joints):
      try:
         self._group.set_joint_value_target([float(x) for x in joints])
      except moveit_commander.MoveItCommanderException as e:
         rospy.logwarn(f'Invalid joint goal: {e}')
         return False, []
      return self._plan('joint goal')


   def plan_to_pose(self, pose):
      try:
         self._group.set_pose_target(pose.to_msg())
         return self._plan('pose goal')
      except moveit_commander.MoveItCommanderException as e:
         rospy.logwarn(f'Invalid pose goal: {e}')
         return False, []
      finally:
         self._group.clear_pose_targets()


   def plan_cartesian_path(self, poses, eef_step, jump_threshold):
      waypoints = [pose.to_msg() for pose in poses]
      try:
         plan, fraction = self._group.compute_cartesian_path(waypoints, eef_step, jump_threshold, avoid_collisions=False)
      except moveit_commander.MoveItCommanderException as e:
         rospy.logwarn(f'Could not compute Cartesian path: {e}')
         return 0.0, []
      if fraction < 1.0: rospy.logwarn(f'Could not plan Cartesian path, deviation was {1 - fraction}')
      return fraction, list(plan.joint_trajectory.points)


   def _plan(self, goal_desc):
      try:
         plan_success, plan, _, plan_result = self._group.plan()
      except moveit_commander.MoveItCommanderException as e:
         rospy.logwarn(f'Could not plan {goal_desc}: {e}')
         return False, []
      if not plan_success:
         rospy.logwarn(f'Could not plan {goal_desc}: {moveit_desc(plan_result)}')
         return False, []
      return True, list(plan.joint_trajectory.points)
