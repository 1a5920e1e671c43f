#!/usr/bin/env python3

import logging
import threading
from contextlib import contextmanager
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError

from emulator_errors import PlanningTimeout


logger = logging.getLogger('rosout.planning_session')


class PlanningSession:
   ''' Exclusive, time-bounded access to the motion planner.

   The planner keeps a mutable start state, so a whole pick plan has to run
   inside one checkout(). All planner calls run on a single worker thread: a
   call that timed out keeps the worker busy and later calls queue behind it
   instead of running alongside it.
   '''

   def __init__(self, planner, timeout=30.0):
      self._planner = planner
      self._timeout = timeout
      self._lock = threading.Lock()
      self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='planner')


   @property
   def timeout(self):
      return self._timeout


   @timeout.setter
   def timeout(self, value):
      self._timeout = value


   @contextmanager
   def checkout(self):
      with self._lock:
         lease = PlannerLease(self)
         try:
            yield lease
         finally:
            lease._released = True


   def shutdown(self):
      self._executor.shutdown(wait=False)


   def _call(self, method, *args):
      future = self._executor.submit(getattr(self._planner, method), *args)
      timeout = self._timeout if self._timeout and self._timeout > 0 else None
      try:
         return future.result(timeout=timeout)
      except FutureTimeoutError:
         logger.error(f'Planner call {method} did not return within {timeout} s')
         raise PlanningTimeout(f'{method} did not return within {timeout} s') from None


class PlannerLease:
   ''' Planner handle valid only inside PlanningSession.checkout(). '''

   def __init__(self, session):
      self._session = session
      self._released = False


   def _call(self, method, *args):
      if self._released: raise RuntimeError('Planner lease used after it was released')
      return self._session._call(method, *args)


   def reset_start_state(self):
      return self._call('reset_start_state')


   def set_start_joints(self, joints):
      return self._call('set_start_joints', joints)


   def plan_to_joints(self, joints):
      return self._call('plan_to_joints', joints)


   def plan_to_pose(self, pose):
      return self._call('plan_to_pose', pose)


   def plan_cartesian_path(self, poses, eef_step, jump_threshold):
      return self._call('plan_cartesian_path', poses, eef_step, jump_threshold)
