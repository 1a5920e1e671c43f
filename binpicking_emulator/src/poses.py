#!/usr/bin/env python3

import numpy as np
from scipy.spatial.transform import Rotation


def joint_configuration(values, num_of_joints):
   ''' Returns values as a float array, raising ValueError on a length mismatch. '''
   joints = np.asarray(values, dtype=float).reshape(-1)
   if joints.size != num_of_joints:
      raise ValueError(f'Expected {num_of_joints} joint values, got {joints.size}')
   return joints


def format_joints(joints):
   return ' '.join(f'{x:.4f}' for x in joints)


class CartesianPose:
   ''' End-effector pose in task space, position in metres and unit quaternion (x, y, z, w). '''

   def __init__(self, position, orientation):
      self.position = np.array(position, dtype=float)
      if self.position.shape != (3,):
         raise ValueError(f'Pose position must have 3 components, got {self.position.shape}')
      quat = np.array(orientation, dtype=float)
      if quat.shape != (4,) or not np.isfinite(quat).all() or np.linalg.norm(quat) == 0:
         raise ValueError(f'Invalid pose orientation {quat.tolist()}')
      self._rotation = Rotation.from_quat(quat)


   @classmethod
   def from_msg(cls, msg):
      p, o = msg.position, msg.orientation
      return cls([p.x, p.y, p.z], [o.x, o.y, o.z, o.w])


   @property
   def orientation(self):
      return self._rotation.as_quat()


   @property
   def rotation(self):
      return self._rotation


   def distance_to(self, other):
      return float(np.linalg.norm(other.position - self.position))


   def angle_to(self, other):
      ''' Rotation angle between both orientations in degrees. '''
      return float(np.degrees((self._rotation.inv() * other.rotation).magnitude()))


   def to_msg(self):
      from geometry_msgs.msg import Pose as PoseMsg

      pose = PoseMsg()
      pose.position.x, pose.position.y, pose.position.z = self.position.tolist()
      q = self.orientation
      pose.orientation.x = q[0]
      pose.orientation.y = q[1]
      pose.orientation.z = q[2]
      pose.orientation.w = q[3]
      return pose


   def __repr__(self):
      return f'CartesianPose(position={self.position.tolist()}, orientation={self.orientation.tolist()})'
