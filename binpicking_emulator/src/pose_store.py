#!/usr/bin/env python3

import logging
import threading

import numpy as np

from poses import joint_configuration, format_joints


logger = logging.getLogger('rosout.pose_store')


class PoseStore:
   ''' Start and end joint configurations sent by the robot at initialization. '''

   def __init__(self, num_of_joints=6):
      self._num_of_joints = num_of_joints
      self._lock = threading.Lock()
      self._start = np.zeros(num_of_joints)
      self._end = np.zeros(num_of_joints)
      self._initialized = False


   @property
   def num_of_joints(self):
      return self._num_of_joints


   @property
   def is_initialized(self):
      with self._lock:
         return self._initialized


   def set_boundary_poses(self, start, end):
      # Validate both before touching the stored pair
      start = joint_configuration(start, self._num_of_joints)
      end = joint_configuration(end, self._num_of_joints)
      with self._lock:
         self._start, self._end = start, end
         self._initialized = True
      logger.info(f'START POSE: [{format_joints(start)}]')
      logger.info(f'END POSE: [{format_joints(end)}]')


   def get_boundary_poses(self):
      with self._lock:
         return self._start.copy(), self._end.copy()
