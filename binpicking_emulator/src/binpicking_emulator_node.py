#!/usr/bin/env python3

import rospy

from dynamic_reconfigure.server import Server
from binpicking_emulator.cfg import EmulatorConfig

from std_srvs.srv import Trigger, TriggerResponse
from photoneo_msgs.srv import trigger_with_id, trigger_with_idResponse
from photoneo_msgs.srv import operations as OperationsSrv, operationsResponse
from photoneo_msgs.srv import initialize_pose, initialize_poseResponse
from photoneo_msgs.srv import add_point, add_pointResponse

from emulator_errors import ErrorCode
from pose_store import PoseStore
from planning_session import PlanningSession
from stage_planner import StagePlanner
from pick_operations import plan_pick_operations
from vision_stubs import VisionSystemStub
from moveit_planner import MoveItPlanner
from bin_pose_client import BinPoseClient
from trajectory_visualizer import TrajectoryVisualizer


class BinpickingEmulator:
   ''' ROS node emulating the services of a bin picking vision system. '''

   DEFAULT_NUM_OF_JOINTS = 6
   DEPENDENCY_POLL_PERIOD = 1.0

   SERVICES = {
      'scan': 'bin_picking_scan',
      'trajectory': 'bin_picking_trajectory',
      'scan_and_trajectory': 'bin_picking_scan_and_traj',
      'initialize': 'bin_picking_init',
      'bin_locator': 'bin_locator',
      'pick_failed': 'bin_picking_pick_failed',
      'change_solution': 'bin_picking_change_solution',
      # Calibration
      'add_point': 'calibration_add_point',
      'set_to_scanner': 'calibration_set_to_scanner',
      'reset': 'calibration_reset',
      'start': 'calibration_start',
   }


   def __init__(self, node_name, node_name_pretty):
      self._node_name = node_name
      self._node_name_pretty = node_name_pretty

      # Initialise node
      rospy.init_node(self._node_name)
      self._load_params()

      # Initial wait for MoveIt to be properly loaded
      rospy.sleep(self._startup_delay)
      self._wait_for_service('/compute_ik', 'Waiting for MoveIt config to be properly loaded!')
      self._wait_for_service(f'/{self._bin_pose_service}', f'Waiting for bin pose emulator to provide /{self._bin_pose_service} service')

      # Set up collaborators
      self._pose_store = PoseStore(self._num_of_joints)
      self._moveit_planner = MoveItPlanner(self._planning_group, self._planner_id, self._goal_tolerance)
      self._session = PlanningSession(self._moveit_planner)
      self._visualizer = TrajectoryVisualizer(self._moveit_planner.joint_names, frame_id=self._frame_id, ee_link=self._ee_link)
      self._stage_planner = StagePlanner(
         self._session, self._pose_store, BinPoseClient(self._bin_pose_service), self._visualizer,
         cartesian_grasp=self._cartesian_grasp,
         require_initialization=self._require_initialization,
         strict_start_stage=self._strict_start_stage)
      self._vision = VisionSystemStub(sleep=rospy.sleep)

      # Bind callbacks
      rospy.on_shutdown(self._shutdown_callback)
      Server(EmulatorConfig, self._reconfigure_callback)

      # Set up services
      self._advertise('scan', trigger_with_id, self._scan)
      self._advertise('trajectory', OperationsSrv, self._trajectory)
      self._advertise('scan_and_trajectory', OperationsSrv, self._scan_and_trajectory)
      self._advertise('initialize', initialize_pose, self._initialize)
      self._advertise('bin_locator', trigger_with_id, self._bin_locator)
      self._advertise('pick_failed', trigger_with_id, self._pick_failed)
      self._advertise('change_solution', trigger_with_id, self._change_solution)
      self._advertise('add_point', add_point, self._calibration_add_point)
      self._advertise('set_to_scanner', Trigger, self._calibration_set_to_scanner)
      self._advertise('reset', Trigger, self._calibration_reset)
      self._advertise('start', trigger_with_id, self._calibration_start)

      rospy.logwarn(f'{self._node_name_pretty}: Ready')


   def _load_params(self):
      num_of_joints = rospy.get_param('~num_of_joints', rospy.get_param('photoneo_module/num_of_joints', None))
      if num_of_joints is None:
         rospy.logwarn(f'Not able to load "num_of_joints" from param server, using default value {self.DEFAULT_NUM_OF_JOINTS}')
         num_of_joints = self.DEFAULT_NUM_OF_JOINTS
      self._num_of_joints = int(num_of_joints)

      self._service_namespace = rospy.get_param('~service_namespace', '/locator_node').rstrip('/')
      self._bin_pose_service = rospy.get_param('~bin_pose_service', 'bin_pose')
      self._planning_group = rospy.get_param('~planning_group', 'manipulator')
      self._planner_id = rospy.get_param('~planner_id', 'RRTConnectkConfigDefault')
      self._goal_tolerance = rospy.get_param('~goal_tolerance', 0.001)
      self._frame_id = rospy.get_param('~frame_id', 'base_link')
      self._ee_link = rospy.get_param('~ee_link', 'tool0')
      self._cartesian_grasp = rospy.get_param('~cartesian_grasp', True)
      self._info_markers = rospy.get_param('~info_markers', True)
      self._require_initialization = rospy.get_param('~require_initialization', True)
      self._strict_start_stage = rospy.get_param('~strict_start_stage', False)
      self._startup_delay = rospy.get_param('~startup_delay', 3.0)


   def _wait_for_service(self, service, message):
      while not rospy.is_shutdown():
         try:
            rospy.wait_for_service(service, timeout=self.DEPENDENCY_POLL_PERIOD)
            return
         except rospy.ROSException:
            rospy.logwarn(f'{self._node_name_pretty}: {message}')


   def _advertise(self, key, service_class, handler):
      rospy.Service(f'{self._service_namespace}/{self.SERVICES[key]}', service_class, handler)


   def _plan_operations(self):
      return plan_pick_operations(self._stage_planner, self._info_markers)


   def _trajectory(self, req):
      rospy.loginfo(f'{self._node_name_pretty}: Binpicking Trajectory Service called, vision system ID {req.vision_system_id}')
      return operationsResponse([op.to_msg() for op in self._plan_operations()])


   def _scan_and_trajectory(self, req):
      rospy.loginfo(f'{self._node_name_pretty}: Binpicking Scan and Trajectory Service called, vision system ID {req.vision_system_id}')
      self._vision.scan(req.vision_system_id)
      return operationsResponse([op.to_msg() for op in self._plan_operations()])


   def _initialize(self, req):
      rospy.loginfo(f'{self._node_name_pretty}: Binpicking Init Service called, vision system ID {req.vision_system_id}')
      try:
         self._pose_store.set_boundary_poses(req.startPose.position, req.endPose.position)
      except ValueError as e:
         rospy.logerr(f'{self._node_name_pretty}: Could not initialize poses: {e}')
         return initialize_poseResponse(success=False, result=ErrorCode.CONFIGURATION_MISSING)
      return initialize_poseResponse(success=True, result=0)


   def _scan(self, req):
      return trigger_with_idResponse(success=self._vision.scan(req.id))


   def _bin_locator(self, req):
      success, message = self._vision.locate_bin(req.id)
      return trigger_with_idResponse(success=success, message=message)


   def _pick_failed(self, req):
      return trigger_with_idResponse(success=self._vision.pick_failed(req.id))


   def _change_solution(self, req):
      return trigger_with_idResponse(success=self._vision.change_solution(req.id))


   def _calibration_add_point(self, req):
      error, state, too_close, message, success = self._vision.calibration_add_point()
      return add_pointResponse(
         average_reprojection_error=error,
         calibration_state=state,
         too_close_indices=too_close,
         message=message,
         success=success)


   def _calibration_set_to_scanner(self, req):
      return TriggerResponse(success=self._vision.calibration_set_to_scanner())


   def _calibration_reset(self, req):
      return TriggerResponse(success=self._vision.calibration_reset())


   def _calibration_start(self, req):
      return trigger_with_idResponse(success=self._vision.calibration_start(req.id))


   def _reconfigure_callback(self, config, level):
      self._session.timeout = config.planning_timeout
      self._visualizer.enabled = config.visualize
      self._visualizer.delay = config.visualization_delay
      self._vision.delay_scale = config.delay_scale
      return config


   def _shutdown_callback(self):
      self._session.shutdown()
      rospy.loginfo(f'{self._node_name_pretty} was terminated.')


if __name__ == '__main__':

   # Start main logic
   BinpickingEmulator('binpicking_emulator', 'BIN PICKING EMULATOR')

   # Keep node alive until shutdown
   rospy.spin()
