#!/usr/bin/env python3

import time
import logging


logger = logging.getLogger('rosout.vision_stubs')


class VisionSystemStub:
   ''' Stand-in for the vision system services, each answers after a fixed delay. '''

   DELAYS = {
      'scan': 5.0,
      'bin_locator': 5.0,
      'calibration_add_point': 5.0,
      'calibration_set_to_scanner': 2.0,
      'calibration_reset': 2.0,
      'calibration_start': 2.0,
      'pick_failed': 5.0,
      'change_solution': 5.0,
   }

   REPROJECTION_ERROR = 12.345
   CALIBRATION_STATE = 0
   TOO_CLOSE_INDICES = [0, 0, 0, 0]


   def __init__(self, delays=None, delay_scale=1.0, sleep=time.sleep):
      unknown = set(delays or {}) - set(self.DELAYS)
      if unknown: raise ValueError(f'Unknown stub delays: {", ".join(sorted(unknown))}')
      self._delays = dict(self.DELAYS, **(delays or {}))
      self.delay_scale = delay_scale
      self._sleep = sleep


   def delay(self, name):
      return self._delays[name] * self.delay_scale


   def _simulate(self, name):
      # Simulating delay
      self._sleep(self.delay(name))


   def scan(self, vision_system_id):
      logger.info(f'Binpicking Scan Service called, vision system ID {vision_system_id}')
      self._simulate('scan')
      return True


   def locate_bin(self, vision_system_id):
      logger.info(f'Bin Locator Service called, vision system ID {vision_system_id}')
      self._simulate('bin_locator')
      return True, 'OK'


   def calibration_add_point(self):
      ''' Returns reprojection error, calibration state, too close indices, message and success. '''
      logger.info('Calibration Add Point Service called')
      self._simulate('calibration_add_point')
      return self.REPROJECTION_ERROR, self.CALIBRATION_STATE, list(self.TOO_CLOSE_INDICES), 'OK', True


   def calibration_set_to_scanner(self):
      logger.info('Calibration Set To Scanner Service called')
      self._simulate('calibration_set_to_scanner')
      return True


   def calibration_reset(self):
      logger.info('Calibration Reset Service called')
      self._simulate('calibration_reset')
      return True


   def calibration_start(self, vision_system_id):
      logger.info(f'Calibration Start Service called, vision system ID {vision_system_id}')
      self._simulate('calibration_start')
      return True


   def pick_failed(self, vision_system_id):
      logger.info(f'Binpicking Pick Failed Service called, vision system ID {vision_system_id}')
      self._simulate('pick_failed')
      return True


   def change_solution(self, solution_id):
      logger.info(f'Binpicking Change Solution Service called, solution ID {solution_id}')
      self._simulate('change_solution')
      return True
