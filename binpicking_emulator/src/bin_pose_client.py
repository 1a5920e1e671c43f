#!/usr/bin/env python3

import rospy

from bin_pose_msgs.srv import bin_pose as BinPoseSrv

from emulator_errors import PoseSourceUnavailable
from poses import CartesianPose


class BinPoseClient:
   ''' Fetches approach, grasp and deapproach poses of the next pick from the bin pose emulator. '''

   def __init__(self, service_name='bin_pose'):
      self._service_name = service_name
      self._bin_pose = rospy.ServiceProxy(service_name, BinPoseSrv)


   def get_pick_poses(self):
      try:
         res = self._bin_pose()
      except (rospy.ServiceException, rospy.ROSException) as e:
         raise PoseSourceUnavailable(f'Call to {self._service_name} failed: {e}') from e

      try:
         poses = tuple(CartesianPose.from_msg(p) for p in (res.approach_pose, res.grasp_pose, res.deapproach_pose))
      except ValueError as e:
         raise PoseSourceUnavailable(f'{self._service_name} returned an invalid pose: {e}') from e

      approach, grasp, deapproach = poses
      rospy.loginfo(f'Pick poses received, approach -> grasp {approach.distance_to(grasp) * 1_000:.1f} mm / {approach.angle_to(grasp):.1f} deg, '
                    f'grasp -> deapproach {grasp.distance_to(deapproach) * 1_000:.1f} mm / {grasp.angle_to(deapproach):.1f} deg')
      return poses
